import pytest

from config import AppConfig
from errors import ConfigError, InvalidSlug, PastaNotFound
from slugs import (
    DEFAULT_ANIMAL_NAMES,
    AnimalNamesCodec,
    HashidsCodec,
    build_codec,
    load_names,
)


def test_default_animal_list_is_usable():
    assert len(DEFAULT_ANIMAL_NAMES) == 64
    assert len(set(DEFAULT_ANIMAL_NAMES)) == 64


def test_animal_names_positional_encoding():
    codec = AnimalNamesCodec()
    assert codec.encode(0) == "ant"
    assert codec.encode(1) == "eel"
    assert codec.encode(63) == "zebra"
    assert codec.encode(64) == "eel-ant"
    assert codec.encode(65) == "eel-eel"
    assert codec.encode(64**2) == "eel-ant-ant"


def test_animal_names_decode():
    codec = AnimalNamesCodec()
    assert codec.decode("ant") == 0
    assert codec.decode("eel-eel") == 65
    assert codec.decode("zebra-zebra") == 64**2 - 1


@pytest.mark.parametrize("codec", [AnimalNamesCodec(), HashidsCodec(), HashidsCodec("pepper", 8)])
def test_round_trip(codec):
    for pasta_id in [*range(0, 70_000, 7), 2**16 - 1, 2**32, 2**63 - 1]:
        assert codec.decode(codec.encode(pasta_id)) == pasta_id


def test_custom_names_use_their_own_base():
    codec = AnimalNamesCodec(["zero", "one"])
    assert codec.encode(5) == "one-zero-one"
    assert codec.decode("one-zero-one") == 5


def test_unknown_word_is_not_found():
    codec = AnimalNamesCodec()
    with pytest.raises(InvalidSlug):
        codec.decode("ant-unicorn")
    with pytest.raises(PastaNotFound):
        codec.decode("")


def test_hashids_minimum_length():
    codec = HashidsCodec()
    assert len(codec.encode(0)) >= 6
    assert len(codec.encode(12345)) >= 6


@pytest.mark.parametrize("slug", ["", "not-a-slug", "!!!!!!"])
def test_hashids_rejects_garbage(slug):
    with pytest.raises(InvalidSlug):
        HashidsCodec().decode(slug)


def test_negative_ids_are_rejected():
    with pytest.raises(ValueError):
        AnimalNamesCodec().encode(-1)
    with pytest.raises(ValueError):
        HashidsCodec().encode(-1)


@pytest.mark.parametrize(
    "names",
    [
        [],
        ["only"],
        ["cat", "dog", "cat"],
        ["cat", "hot-dog"],
        ["cat", ""],
        ["cat", ".."],
        ["cat", "."],
        ["cat", "a/b"],
        ["cat", "a\\b"],
    ],
)
def test_invalid_name_lists(names):
    with pytest.raises(ConfigError):
        AnimalNamesCodec(names)


def test_load_names_skips_blank_lines(tmp_path):
    path = tmp_path / "names.txt"
    path.write_text("red\n\n  green \nblue\n")
    assert load_names(path) == ["red", "green", "blue"]


def test_load_names_empty_file(tmp_path):
    path = tmp_path / "names.txt"
    path.write_text("\n\n")
    with pytest.raises(ConfigError):
        load_names(path)


def test_load_names_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_names(tmp_path / "missing.txt")


def test_build_codec_selects_variant(tmp_path):
    assert isinstance(build_codec(AppConfig()), AnimalNamesCodec)
    assert isinstance(build_codec(AppConfig(hash_ids=True)), HashidsCodec)

    names = tmp_path / "names.txt"
    names.write_text("x\ny\nz\n")
    codec = build_codec(AppConfig(custom_names=names))
    assert codec.encode(4) == "y-y"


def test_build_codec_rejects_too_short_custom_list(tmp_path):
    names = tmp_path / "names.txt"
    names.write_text("lonely\n")
    with pytest.raises(ConfigError):
        build_codec(AppConfig(custom_names=names))
