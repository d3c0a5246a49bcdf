"""Canonical stat record shared by every stats source.

Whatever the source (ESPN, Sleeper, a commissioner's CSV, a JSON batch posted
to the admin API), stats reach the importer as a list of StatRecord objects.
Field names match the CSV header vocabulary one to one.

For beginners:

Pydantic validates each record as it is built: a missing game key, an unknown
round or a negative touchdown count raise immediately, long before the
importer touches the database. validate_records() runs that check over a
whole batch and reports every bad record at once.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import StatValidationError
from ..roster import KNOWN_POSITIONS, normalize_position
from ..rounds import PlayoffRound, SeasonType, parse_round

# Record field -> PlayerGameStat column
RECORD_TO_COLUMN = {
    "passing_yards": "passing_yards",
    "passing_tds": "passing_tds",
    "passing_two_pt": "passing_two_pt",
    "rushing_yards": "rushing_yards",
    "rushing_tds": "rushing_tds",
    "rushing_two_pt": "rushing_two_pt",
    "receiving_yards": "receiving_yards",
    "receiving_tds": "receiving_tds",
    "receiving_two_pt": "receiving_two_pt",
    "receptions": "receptions",
    "fg0_39": "fg_made_0_39",
    "fg40_49": "fg_made_40_49",
    "fg50_59": "fg_made_50_59",
    "fg60_plus": "fg_made_60_plus",
    "xp_made": "xp_made",
    "interceptions": "def_int",
    "sacks": "sacks",
    "safeties": "safeties",
    "fumble_recoveries": "def_fumble_recoveries",
    "return_tds": "def_st_tds",
    "fum2pk": "fum2pk",
    "fum2pt": "fum2pt",
    "int2pk": "int2pk",
    "int2pt": "int2pt",
}
RECORD_STAT_FIELDS = tuple(RECORD_TO_COLUMN)

# Yardage can legitimately be negative (a 3-yard sack-fumble run)
YARD_FIELDS = {"passing_yards", "rushing_yards", "receiving_yards"}

RECORD_META_FIELDS = (
    "external_player_id",
    "player_name",
    "team_abbr",
    "position",
    "game_key",
    "round",
    "season_type",
    "week",
    "kickoff_at",
)


class StatRecord(BaseModel):
    """One player's raw counting stats in one game, provider-agnostic."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", use_enum_values=True)

    # Identity hints - any of them may be missing
    external_player_id: str | None = None
    player_name: str | None = None
    team_abbr: str | None = None
    position: str | None = None

    # Game context
    game_key: str = Field(min_length=1)
    round: str | None = None  # Wildcard, Divisional, Conference, SuperBowl
    season_type: SeasonType = Field(default=SeasonType.POST, validate_default=True)
    week: int | None = Field(default=None, ge=1)
    kickoff_at: datetime | None = None

    # Counting stats
    passing_yards: float = 0
    passing_tds: float = 0
    passing_two_pt: float = 0
    rushing_yards: float = 0
    rushing_tds: float = 0
    rushing_two_pt: float = 0
    receiving_yards: float = 0
    receiving_tds: float = 0
    receiving_two_pt: float = 0
    receptions: float = 0
    fg0_39: float = 0
    fg40_49: float = 0
    fg50_59: float = 0
    fg60_plus: float = 0
    xp_made: float = 0
    interceptions: float = 0
    sacks: float = 0
    safeties: float = 0
    fumble_recoveries: float = 0
    return_tds: float = 0
    fum2pk: float = 0
    fum2pt: float = 0
    int2pk: float = 0
    int2pt: float = 0

    @field_validator("external_player_id", "player_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("game_key", mode="before")
    @classmethod
    def _game_key(cls, value):
        # ESPN event ids arrive as numbers in JSON batches
        return value if value is None else str(value)

    @field_validator("team_abbr", mode="before")
    @classmethod
    def _team_code(cls, value):
        if value is None:
            return None
        value = str(value).strip().upper()
        return value or None

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, value):
        code = normalize_position(value)
        if code is not None and code not in KNOWN_POSITIONS:
            raise ValueError(f"unknown position {value!r}")
        return code

    @field_validator("round", mode="before")
    @classmethod
    def _round(cls, value):
        if isinstance(value, PlayoffRound):
            return value.value
        if value is None or not str(value).strip():
            return None
        return parse_round(str(value)).value

    @field_validator("season_type", mode="before")
    @classmethod
    def _season_type(cls, value):
        if isinstance(value, SeasonType):
            return value
        if value is None or not str(value).strip():
            return SeasonType.POST
        return str(value).strip().lower()

    @field_validator("week", mode="before")
    @classmethod
    def _week(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    @field_validator("kickoff_at", mode="before")
    @classmethod
    def _kickoff(cls, value):
        # Unparsable kickoffs are dropped; the game upserter falls back to now
        if value is None or isinstance(value, datetime):
            return value
        text = str(value).strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    @field_validator(*RECORD_STAT_FIELDS, mode="before")
    @classmethod
    def _count(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value

    @model_validator(mode="after")
    def _check_counts(self):
        for name in RECORD_STAT_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number")
            if name not in YARD_FIELDS and value < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.round is None and self.week is None:
            raise ValueError("record needs a round or a week")
        return self

    def stat_columns(self) -> dict[str, int]:
        """Counting stats keyed by PlayerGameStat column, truncated toward zero."""
        return {column: int(getattr(self, name)) for name, column in RECORD_TO_COLUMN.items()}


def has_stat_values(record: StatRecord) -> bool:
    """True when at least one counting stat survives truncation as non-zero."""
    return any(value != 0 for value in record.stat_columns().values())


def _format_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "record"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def validate_records(
    records: Iterable[StatRecord | Mapping],
    label: str = "record",
    start: int = 0,
    numbers: list[int] | None = None,
) -> list[StatRecord]:
    """Validate a whole batch, raising one StatValidationError listing every bad record.

    Args:
        records: StatRecord instances or plain mappings with the same keys
        label: What to call an item in error messages ("record", "row")
        start: Number of the first item in error messages
        numbers: Explicit number for each item (overrides start)
    """
    validated = []
    errors = []
    for position, raw in enumerate(records):
        index = numbers[position] if numbers is not None else start + position
        if isinstance(raw, StatRecord):
            validated.append(raw)
            continue
        if not isinstance(raw, Mapping):
            errors.append(f"{label} {index}: expected a mapping, got {type(raw).__name__}")
            continue
        try:
            validated.append(StatRecord.model_validate(dict(raw)))
        except ValidationError as e:
            errors.append(f"{label} {index}: {_format_error(e)}")

    if errors:
        raise StatValidationError(f"{len(errors)} invalid stat {label}(s): {errors[0]}", errors)
    return validated
