"""Domain models for pm_ticket — pure dataclasses, no business logic."""

from dataclasses import dataclass

from src.pm_common.enums import SubgameType


@dataclass(frozen=True)
class StakeGroup:
    """Numbers sharing one subgame type and one per-number stake."""

    subgame_type: SubgameType
    numbers: frozenset[str]
    amount_per_number: int   # cents

    @property
    def total_amount(self) -> int:
        return self.amount_per_number * len(self.numbers)

    @property
    def key(self) -> tuple[SubgameType, int]:
        return self.subgame_type, self.amount_per_number


def groups_total(groups: list[StakeGroup]) -> int:
    return sum(g.total_amount for g in groups)


def groups_number_count(groups: list[StakeGroup]) -> int:
    return sum(len(g.numbers) for g in groups)
