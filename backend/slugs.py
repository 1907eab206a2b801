"""Slug codecs — turn numeric pasta ids into short public strings and back."""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from hashids import Hashids

from config import AppConfig
from errors import ConfigError, InvalidSlug

SEPARATOR = "-"

DEFAULT_ANIMAL_NAMES = (
    "ant", "eel", "mole", "sloth", "ape", "emu", "monkey", "snake",
    "bat", "falcon", "mouse", "spider", "bear", "fish", "otter", "squid",
    "bee", "fly", "owl", "swan", "bird", "fox", "panda", "tiger",
    "boar", "frog", "pig", "toad", "bug", "gecko", "pony", "trout",
    "cat", "goat", "puma", "turtle", "clam", "goose", "rabbit", "viper",
    "cobra", "hawk", "rat", "wasp", "cow", "hog", "ray", "whale",
    "crab", "horse", "rhino", "wolf", "crow", "jay", "seal", "worm",
    "dog", "kiwi", "shark", "yak", "duck", "lion", "sheep", "zebra",
)


class SlugCodec(Protocol):
    def encode(self, pasta_id: int) -> str: ...

    def decode(self, slug: str) -> int: ...


class HashidsCodec:
    """Reversible hashids encoding, optionally salted."""

    def __init__(self, salt: str = "", min_length: int = 6):
        self._hashids = Hashids(salt=salt, min_length=min_length)

    def encode(self, pasta_id: int) -> str:
        if pasta_id < 0:
            raise ValueError("pasta ids are unsigned")
        return self._hashids.encode(pasta_id)

    def decode(self, slug: str) -> int:
        numbers = self._hashids.decode(slug)
        if len(numbers) != 1 or self._hashids.encode(numbers[0]) != slug:
            raise InvalidSlug(slug)
        return numbers[0]


class AnimalNamesCodec:
    """Positional numeral system whose digits are words.

    The base is the size of the word list. Words are joined most significant
    first, so with the default 64 animals ``0`` is ``ant`` and ``65`` is
    ``eel-eel``.
    """

    def __init__(self, names: Sequence[str] = DEFAULT_ANIMAL_NAMES):
        names = tuple(names)
        if len(names) < 2:
            raise ConfigError("the name list needs at least two entries")
        for name in names:
            if not name or name != name.strip():
                raise ConfigError(f"invalid name {name!r} in name list")
            if SEPARATOR in name:
                raise ConfigError(f"name {name!r} contains {SEPARATOR!r}")
            # Slugs double as attachment directory names.
            if name in (".", "..") or "/" in name or "\\" in name:
                raise ConfigError(f"name {name!r} is not usable in a path")
        if len(set(names)) != len(names):
            raise ConfigError("the name list contains duplicates")

        self.names = names
        self._index = {name: i for i, name in enumerate(names)}

    def encode(self, pasta_id: int) -> str:
        if pasta_id < 0:
            raise ValueError("pasta ids are unsigned")
        base = len(self.names)
        words = []
        while True:
            pasta_id, digit = divmod(pasta_id, base)
            words.append(self.names[digit])
            if pasta_id == 0:
                break
        return SEPARATOR.join(reversed(words))

    def decode(self, slug: str) -> int:
        base = len(self.names)
        result = 0
        for word in slug.split(SEPARATOR):
            digit = self._index.get(word)
            if digit is None:
                raise InvalidSlug(slug)
            result = result * base + digit
        return result


def load_names(path: Path) -> list[str]:
    """Read a newline separated name list, ignoring blank lines."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read name list {path}: {e}") from e

    names = [line.strip() for line in text.splitlines() if line.strip()]
    if not names:
        raise ConfigError(f"name list {path} is empty")
    return names


def build_codec(config: AppConfig) -> SlugCodec:
    if config.hash_ids:
        return HashidsCodec(config.hash_ids_salt, config.hash_ids_min_length)
    if config.custom_names is not None:
        return AnimalNamesCodec(load_names(config.custom_names))
    return AnimalNamesCodec()
