""" lovesim: narrative runtime for an episodic visual novel """
