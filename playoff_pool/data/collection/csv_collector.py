"""Commissioner CSV stat uploads.

When no provider has a game (or a provider got it wrong), the commissioner
uploads a delimited file. The header row uses the canonical snake_case field
names, one column per StatRecord field:

    external_player_id,player_name,team_abbr,position,game_key,round,week,...
    4881,"Jackson, Lamar",BAL,QB,401547000,Wildcard,,...

Only game_key is required; every other column may be left out and defaults
to empty/zero. Unknown columns are reported and ignored.

For beginners:

pandas' C parser handles quoting for us: a quoted field may contain the
delimiter or even line breaks. Everything is read as text (dtype=str) so
pydantic, not pandas, decides what a valid number is.
"""

import io
import logging
from pathlib import Path
from typing import ClassVar

import pandas as pd

from ...config.settings import settings
from ...exceptions import CSVParsingError, MissingColumnsError
from ..records import RECORD_META_FIELDS, RECORD_STAT_FIELDS, StatRecord, validate_records

logger = logging.getLogger(__name__)


class StatsCSVParser:
    """Parse stat CSV files into validated StatRecord lists."""

    KNOWN_COLUMNS: ClassVar[tuple[str, ...]] = RECORD_META_FIELDS + RECORD_STAT_FIELDS
    REQUIRED_COLUMNS: ClassVar[set[str]] = {"game_key"}

    def __init__(self, delimiter: str | None = None):
        self.delimiter = delimiter or settings.csv_delimiter

    def parse_file(self, file_path: Path) -> list[StatRecord]:
        """Parse a CSV file on disk."""
        return self._parse(file_path, source=Path(file_path).name)

    def parse_text(self, text: str, source: str = "upload") -> list[StatRecord]:
        """Parse CSV content already in memory."""
        return self._parse(io.StringIO(text), source=source)

    def parse_bytes(self, data: bytes, source: str = "upload") -> list[StatRecord]:
        """Parse raw upload bytes (UTF-8, optional BOM)."""
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CSVParsingError(f"{source} is not UTF-8 text: {e}") from e
        return self.parse_text(text, source=source)

    def _parse(self, handle, source: str) -> list[StatRecord]:
        try:
            df = pd.read_csv(
                handle,
                sep=self.delimiter,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        except pd.errors.EmptyDataError as e:
            raise CSVParsingError(f"{source} is empty") from e
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.exception("Unreadable stats CSV %s", source)
            raise CSVParsingError(f"CSV parsing failed for {source}: {e}") from e

        df.columns = [str(column).lstrip("\ufeff").strip().lower() for column in df.columns]
        logger.info(f"Read {source}: {len(df)} rows, {len(df.columns)} columns")

        self._validate_columns(df, source)

        unknown = [column for column in df.columns if column not in self.KNOWN_COLUMNS]
        if unknown:
            logger.warning(f"Ignoring unknown columns in {source}: {unknown}")

        known = [column for column in df.columns if column in self.KNOWN_COLUMNS]
        df = df[known]

        # Row 1 is the header, so data starts at row 2. Rows of nothing but
        # delimiters (spreadsheet exports pad with them) are dropped.
        rows, numbers = [], []
        for number, row in enumerate(df.to_dict(orient="records"), start=2):
            if any(str(value).strip() for value in row.values()):
                rows.append(row)
                numbers.append(number)

        records = validate_records(rows, label="row", numbers=numbers)
        logger.info(f"Parsed {len(records)} stat records from {source}")
        return records

    def _validate_columns(self, df: pd.DataFrame, source: str) -> None:
        missing = self.REQUIRED_COLUMNS - set(df.columns)
        if missing:
            logger.error(f"Available columns in {source}: {list(df.columns)}")
            raise MissingColumnsError(f"Missing required columns: {sorted(missing)}")
