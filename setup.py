from __future__ import annotations

import logging
import sys
from pathlib import Path

from setuptools import Command, setup

ROOT = Path(__file__).resolve().parent
PYPROJECT = ROOT / "pyproject.toml"
MIN_PYTHON = (3, 11)


def _warn_if_below_min_python() -> None:
    if sys.version_info < MIN_PYTHON:
        logging.warning(
            "odatastitch targets Python %d.%d+ (running %d.%d)",
            MIN_PYTHON[0],
            MIN_PYTHON[1],
            sys.version_info.major,
            sys.version_info.minor,
        )


def _project_version() -> str:
    import tomllib

    with PYPROJECT.open("rb") as fh:
        data = tomllib.load(fh)
    return data["project"]["version"]


_warn_if_below_min_python()


class PrintVersion(Command):
    user_options = []

    def initialize_options(self):
        self.version = None

    def finalize_options(self):
        self.version = _project_version()

    def run(self):
        print(self.version)


class SampleCheckCommand(Command):
    description = "Check the packaged defaults and render the deep query for the default sample"
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        sys.path.insert(0, str(ROOT / "src"))
        from odatastitch.config import SampleParameters, runtime_defaults_load_telemetry
        from odatastitch.query.catalog import nested_schedule_tasks_request

        sample = SampleParameters.from_defaults()
        telemetry = runtime_defaults_load_telemetry()
        if telemetry["source"] not in ("packaged_toml", "override_toml"):
            raise SystemExit(f"Runtime defaults fell back to built-ins: {telemetry}")
        if not sample.lot_ids or not sample.financial_community_ids:
            raise SystemExit("Packaged sample has no lot or financial community ids")
        query = nested_schedule_tasks_request(sample).query_string()
        print(f"samplecheck: ok lots={len(sample.lot_ids)} query_chars={len(query)}")


setup(
    cmdclass={
        "version": PrintVersion,
        "samplecheck": SampleCheckCommand,
    },
)
