"""CLI helper for checking a regatta table before timing starts."""

from __future__ import annotations

import sys
from typing import List

from regatta_core import RegattaData, RegattaStore


def _format_regatta(regatta: RegattaData) -> str:
    lines = [
        regatta.regatta_name or "(untitled regatta)",
        regatta.date,
        f"Scheduled Races: {regatta.scheduled_races}",
        "",
    ]
    for race in regatta.races:
        lines.append(race.describe())
        for lane, entry in sorted(race.lanes.items()):
            info = f" ({entry.additional_info})" if entry.additional_info else ""
            lines.append(f"  Lane {lane}: {entry.school_name}{info}")
    return "\n".join(lines)


def main(argv: List[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    store = RegattaStore()
    try:
        if args:
            regatta = store.load_workbook(args[0])
        else:
            regatta = store.regatta()
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if regatta is None:
        print("ERROR: no regatta table given and REGATTA_WORKBOOK is not set", file=sys.stderr)
        return 1

    print(_format_regatta(regatta))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
