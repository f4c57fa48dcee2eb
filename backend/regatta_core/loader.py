"""Regatta table import.

The regatta table is an ``.xlsx`` draw sheet laid out as:

   A1:I2    merged title cell, "<regatta name>   <date>"
   A        one 5-row merged cell per race holding the race number
   B / C    row labels (boat class, heat/flight)
   D..I     lanes 1..6; rows are school, info, place, split, time
"""

from __future__ import annotations

import datetime as dt
import logging
import os
import re
from pathlib import Path
from typing import Any, List, Optional

import openpyxl

from .grid import LANES
from .regatta import LaneEntry, RaceData, RegattaData

logger = logging.getLogger(__name__)

TITLE_RANGE = "A1:I2"
TITLE_SPLIT_RE = re.compile(r"\s{2,}")
RACE_NUMBER_RE = re.compile(r"^[0-9]+$")
RACE_BLOCK_ROWS = 5
FIRST_LANE_COLUMN = 4  # D
LABEL_COLUMNS = (2, 3)  # B, then C


class RegattaStore:
    """Holds the regatta table loaded for this process."""

    def __init__(self, data_dir: Path | None = None, workbook: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            data_dir: Directory relative workbook names resolve against
            workbook: Workbook loaded on first use (``REGATTA_WORKBOOK``)
        """
        env_dir = os.getenv("REGATTA_DATA_DIR", "")
        self.data_dir = data_dir or (Path(env_dir) if env_dir else Path(__file__).parent.parent / "data")
        workbook = workbook or os.getenv("REGATTA_WORKBOOK", "")
        self.workbook_path: Optional[Path] = self._resolve(workbook) if workbook else None
        self._regatta: RegattaData | None = None

    def regatta(self) -> Optional[RegattaData]:
        if self._regatta is None and self.workbook_path is not None:
            self.load_workbook(self.workbook_path)
        return self._regatta

    def load_workbook(self, path: str | Path) -> RegattaData:
        resolved = self._resolve(path)
        if resolved.suffix.lower() != ".xlsx":
            raise ValueError("only .xlsx files are supported")
        if not resolved.exists():
            raise FileNotFoundError(f"Regatta table not found: {resolved}")

        regatta = read_regatta_workbook(resolved)
        self._regatta = regatta
        self.workbook_path = resolved
        logger.info(
            "Loaded regatta '%s' (%s): %d races, %d scheduled",
            regatta.regatta_name,
            regatta.date,
            len(regatta.races),
            regatta.scheduled_races,
        )
        return regatta

    def _resolve(self, path: str | Path) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.data_dir / candidate
        return candidate


def read_regatta_workbook(path: Path) -> RegattaData:
    workbook = openpyxl.load_workbook(path, data_only=True)
    try:
        if not workbook.worksheets:
            raise ValueError("no sheets found in regatta table")
        sheet = workbook.worksheets[0]
        regatta = RegattaData()

        for merged in sheet.merged_cells.ranges:
            if merged.coord == TITLE_RANGE:
                regatta.regatta_name, regatta.date = _split_title(sheet.cell(1, 1).value)
                break

        for merged in sheet.merged_cells.ranges:
            if merged.min_col != 1 or merged.max_col != 1:
                continue
            if merged.max_row - merged.min_row != RACE_BLOCK_ROWS - 1:
                continue
            race_number = _as_race_number(sheet.cell(merged.min_row, 1).value)
            if race_number is None:
                continue
            regatta.races.append(_read_race(sheet, race_number, merged.min_row))
    finally:
        workbook.close()

    regatta.races.sort(key=lambda race: race.race_number)
    return regatta


def _read_race(sheet: Any, race_number: int, first_row: int) -> RaceData:
    race = RaceData(race_number=race_number)
    columns: List[List[str]] = [[] for _ in LANES]

    for offset in range(RACE_BLOCK_ROWS):
        row = first_row + offset
        label = ""
        for column in LABEL_COLUMNS:
            label = _cell_text(sheet.cell(row, column).value)
            if label:
                break
        cells = [_cell_text(sheet.cell(row, FIRST_LANE_COLUMN + index).value) for index in range(len(LANES))]
        race.raw_data.append([label] + cells)
        for index, text in enumerate(cells):
            columns[index].append(text)

    for index, lane in enumerate(LANES):
        entry = LaneEntry(*columns[index])
        if entry.is_scheduled:
            race.lanes[lane] = entry
    return race


def _split_title(value: Any) -> tuple[str, str]:
    parts = [part for part in TITLE_SPLIT_RE.split(_cell_text(value)) if part]
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], " ".join(parts[1:])


def _as_race_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = _cell_text(value)
    return int(text) if RACE_NUMBER_RE.match(text) else None


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dt.datetime, dt.date)):
        return value.strftime("%d/%m/%Y")
    return str(value).strip()
