# tests/conftest.py
import pytest

from headmap.model import HeadingRecord


@pytest.fixture
def heading():
    """Factory for HeadingRecords; positions follow call order."""
    counter = {"position": 0}

    def _make(level: int, text: str = "Descriptive heading", **kwargs) -> HeadingRecord:
        kwargs.setdefault("position", counter["position"])
        counter["position"] += 1
        return HeadingRecord(level=level, text=text, **kwargs)

    return _make
