""" Affection, currency and flag state for a playthrough. """

import logging
from typing import Any, Optional, TYPE_CHECKING
from collections.abc import Iterator, Mapping

from lovesim import util, config, bus, messages

if TYPE_CHECKING:
    from .character import CharacterRegistry

class StateStore:
    """ Bounded numeric and boolean facts about the playthrough.

    Affection is kept per character in [0, max]. Currencies are independent
    named non-negative ledgers. Flags are a set of names. Every mutation that
    changes a value is announced on the message bus.

    Bad identifiers or amounts are logged and ignored, never raised.
    """

    def __init__(self, message_bus:bus.MessageBus) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self.bus = message_bus
        self.characters:Optional["CharacterRegistry"] = None

        self._affection:dict[str, int] = {}
        self._max_affection:dict[str, int] = {}
        self._currency:dict[str, int] = {}
        self._flags:set[str] = set()

    def initialize_characters(self, characters:"CharacterRegistry") -> None:
        """ Hooks up tier lookup and per-character affection caps. """
        self.characters = characters
        for character_id in characters.character_ids():
            character = characters.get(character_id)
            assert character is not None
            self.set_max_affection(character_id, character.max_affection)

    # affection

    def get_affection(self, character_id:str) -> int:
        if util.is_blank(character_id):
            return 0
        return self._affection.get(character_id, 0)

    def get_max_affection(self, character_id:str) -> int:
        return self._max_affection.get(character_id, config.Settings.affection.DEFAULT_MAX)

    def set_max_affection(self, character_id:str, max_affection:int) -> None:
        if util.is_blank(character_id):
            self.logger.warning("ignoring max affection for empty character id")
            return
        if max_affection < 0:
            self.logger.warning(f'ignoring negative max affection {max_affection} for {character_id}')
            return

        self._max_affection[character_id] = max_affection
        if character_id in self._affection:
            self._affection[character_id] = util.clip(self._affection[character_id], 0, max_affection)

    def get_tier(self, character_id:str) -> str:
        if self.characters is None:
            return ""
        return self.characters.tier_of(character_id, self.get_affection(character_id))

    def add_affection(self, character_id:str, delta:int) -> None:
        if util.is_blank(character_id):
            self.logger.warning("ignoring affection change for empty character id")
            return
        self._apply_affection(character_id, self.get_affection(character_id) + delta)

    def set_affection(self, character_id:str, value:int) -> None:
        if util.is_blank(character_id):
            self.logger.warning("ignoring affection set for empty character id")
            return
        self._apply_affection(character_id, value)

    def _apply_affection(self, character_id:str, requested:int) -> None:
        previous = self.get_affection(character_id)
        previous_tier = self.get_tier(character_id)

        new_value = util.clip(requested, 0, self.get_max_affection(character_id))
        self._affection[character_id] = new_value

        if new_value == previous:
            return

        delta = new_value - previous
        self.logger.info(f'affection {character_id} {delta:+d} -> {new_value}')
        self.bus.publish(messages.AffectionChanged(character_id, previous, new_value, delta))

        new_tier = self.get_tier(character_id)
        if new_tier != previous_tier:
            self.logger.info(f'affection tier {character_id} {previous_tier} -> {new_tier}')
            self.bus.publish(messages.AffectionTierChanged(character_id, previous_tier, new_tier))

    # currency

    def get_currency(self, currency:str) -> int:
        return self._currency.get(currency, 0)

    def add_currency(self, currency:str, amount:int) -> None:
        if util.is_blank(currency):
            self.logger.warning("ignoring currency add for empty currency name")
            return
        if amount <= 0:
            self.logger.warning(f'ignoring non-positive {currency} add of {amount}')
            return

        previous = self.get_currency(currency)
        self._currency[currency] = previous + amount
        self.logger.info(f'{currency} +{amount} -> {previous + amount}')
        self.bus.publish(messages.CurrencyChanged(currency, previous, previous + amount, amount))

    def spend_currency(self, currency:str, amount:int) -> bool:
        """ Deducts amount, returning False (and changing nothing) if the
        balance is insufficient or the amount is not positive. """
        if util.is_blank(currency):
            self.logger.warning("ignoring currency spend for empty currency name")
            return False
        if amount <= 0:
            self.logger.warning(f'ignoring non-positive {currency} spend of {amount}')
            return False

        previous = self.get_currency(currency)
        if previous < amount:
            self.logger.info(f'insufficient {currency}: have {previous}, need {amount}')
            return False

        self._currency[currency] = previous - amount
        self.logger.info(f'{currency} -{amount} -> {previous - amount}')
        self.bus.publish(messages.CurrencyChanged(currency, previous, previous - amount, -amount))
        return True

    # flags

    def set_flag(self, flag:str) -> None:
        if util.is_blank(flag):
            self.logger.warning("ignoring empty flag name")
            return
        if flag not in self._flags:
            self.logger.info(f'set flag {flag}')
        self._flags.add(flag)

    def is_flag_set(self, flag:str) -> bool:
        if util.is_blank(flag):
            return False
        return flag in self._flags

    @property
    def flags(self) -> frozenset[str]:
        return frozenset(self._flags)

    # persistence

    def export_snapshot(self) -> dict[str, Any]:
        return {
            "affection": dict(self._affection),
            "max_affection": dict(self._max_affection),
            "currency": dict(self._currency),
            "flags": sorted(self._flags),
        }

    def _int_entries(self, snapshot:Mapping[str, Any], key:str) -> Iterator[tuple[str, int]]:
        """ Well formed (name, int) pairs from a snapshot table, logging the
        rest. """
        table = snapshot.get(key) or {}
        if not isinstance(table, Mapping):
            self.logger.warning(f'bad {key} {table!r} in snapshot, ignoring')
            return
        for name, value in table.items():
            if util.is_blank(name) or not isinstance(name, str) or not isinstance(value, int) or isinstance(value, bool):
                self.logger.warning(f'bad {key} entry {name!r} = {value!r} in snapshot, ignoring')
                continue
            yield name, value

    def import_snapshot(self, snapshot:Optional[Mapping[str, Any]]) -> None:
        """ Replaces all state with the snapshot contents. Does not publish
        change notifications. """
        if snapshot is None:
            self.logger.error("tried to import a null snapshot")
            return
        if not isinstance(snapshot, Mapping):
            self.logger.error(f'snapshot must be a table, got {snapshot!r}')
            return

        self._affection.clear()
        self._currency.clear()
        self._flags.clear()

        for character_id, max_affection in self._int_entries(snapshot, "max_affection"):
            if max_affection < 0:
                self.logger.warning(f'bad max affection {max_affection} for {character_id} in snapshot, ignoring')
                continue
            self._max_affection[character_id] = max_affection
        for character_id, value in self._int_entries(snapshot, "affection"):
            self._affection[character_id] = util.clip(value, 0, self.get_max_affection(character_id))
        for currency, value in self._int_entries(snapshot, "currency"):
            self._currency[currency] = max(0, value)

        flags = snapshot.get("flags") or []
        if not isinstance(flags, (list, tuple, set)):
            self.logger.warning(f'bad flags {flags!r} in snapshot, ignoring')
            flags = []
        self._flags.update(x for x in flags if isinstance(x, str) and not util.is_blank(x))

        self.logger.info(f'state loaded: {len(self._affection)} affection, {len(self._currency)} currencies, {len(self._flags)} flags')

    def reset(self) -> None:
        """ Clears everything. Caps from the character registry survive,
        caps set by hand do not. """
        self._affection.clear()
        self._max_affection.clear()
        self._currency.clear()
        self._flags.clear()
        if self.characters is not None:
            self.initialize_characters(self.characters)
        self.logger.info("state reset")
