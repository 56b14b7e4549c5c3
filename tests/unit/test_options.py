from pathlib import Path

import pytest
from sqliteorm.options import OrmOptions


def test_init_defaults():
    """Test default initialization"""
    options = OrmOptions()

    assert options.paths == {}
    assert options.timeout == 5.0
    assert options.echo is False
    assert options.create_missing is True


def test_paths_become_path_objects():
    options = OrmOptions(paths={'main': 'data/main.db', 'aux': Path('aux.db')})
    assert options.paths == {'main': Path('data/main.db'), 'aux': Path('aux.db')}


def test_validation():
    """Test validation errors"""
    with pytest.raises(ValueError, match='paths must be a mapping'):
        OrmOptions(paths=['main.db'])

    with pytest.raises(ValueError, match='timeout'):
        OrmOptions(timeout=-1)

    with pytest.raises(ValueError, match='timeout'):
        OrmOptions(timeout=None)
