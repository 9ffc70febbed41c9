from enum import Enum
from typing import Any

type JsonDict = dict[str, Any]


class EnumAutoStr(Enum):
    @staticmethod
    def _generate_next_value_(name: str, start: int, count: int, last_values: list[Any]) -> str:
        return name

    def __str__(self) -> str:
        return str(self.value)


def assert_some[T](result: T | None) -> T:
    assert result is not None
    return result
