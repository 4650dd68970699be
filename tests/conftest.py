import os
import sys

import pytest

# Ensure hkflea can be imported without installing
sys.path.append(os.getcwd())

from hkflea import codec
from hkflea.codec import Mode
from hkflea.document import dump_document
from hkflea.history import HistoryEntry, MemoryHistoryStorage, RecentFileCache


@pytest.fixture
def sample_document():
    """A trimmed-down save with a few flea flags and unrelated data."""
    return {
        "playerData": {
            "version": "1.0.28324",
            "geo": 1234,
            "health": 5,
            "SavedFlea_Bone_06": False,
            "SavedFlea_Dock_16": True,
            "SavedFlea_Ant_03": True,
            "fleaGamesStarted": False,
            "completionPercentage": 41.5,
            "scenesVisited": ["Tut_01", "Bone_06"],
        },
        "sceneData": {
            "persistentBools": {"serializedList": [{"SceneName": "Bone_06", "ID": "Breakable Wall", "Value": True}]},
        },
    }


@pytest.fixture
def sample_text(sample_document):
    return dump_document(sample_document)


@pytest.fixture
def encrypted_save(sample_text):
    return codec.encode(sample_text, Mode.ENCRYPTED)


@pytest.fixture
def plain_save(sample_text):
    return codec.encode(sample_text, Mode.PLAIN)


@pytest.fixture
def storage():
    return MemoryHistoryStorage()


@pytest.fixture
def cache(storage):
    """Fresh three-slot history for each test."""
    return RecentFileCache(storage, capacity=3)


@pytest.fixture
def make_entry():
    def factory(n, name=None):
        return HistoryEntry.create(name or f"user{n}.dat", f'{{"n": {n}}}', f"report {n}\n")
    return factory
