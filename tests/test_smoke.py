"""Basic smoke tests."""

import deck_player
import deck_player.version


def test_version_defined() -> None:
    assert isinstance(deck_player.__version__, str)


def test_version_single_source_of_truth() -> None:
    assert deck_player.__version__ == deck_player.version.__version__
