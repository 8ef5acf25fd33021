import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import threshold_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from threshold_toolkit.common.subjects import SubjectTierRule, TierConfig
from threshold_toolkit.core.models.grades import Grade, Season, Tier
from threshold_toolkit.estimator.repository import InMemoryThresholdRepository, ThresholdRow


# 2023+ layout: max mark column embedded in every option row, 8 grades
SAMPLE_2023_TEXT = """\
Cambridge IGCSE Mathematics (0580)
Grade thresholds taken for Syllabus 0580 (Mathematics) in the March 2023 examination.
minimum raw mark required for grade:
maximum raw mark available A B C D E F G
Component 12 100 - - - 60 46 32 18
Component 22 130 101 80 59 - - - -
Component 32 100 - - - 55 40 25 10
Component 42 130 98 75 52 - - - -
Grade thresholds are reported for all options.
Overall thresholds
Option Maximum mark after weighting A* A B C D E F G
AX (12, 32) 200 – – – 115 86 57 28 14
BX (22, 42) 260 205 168 131 94 72 50 – –
BY (22, 42) 260 210 170 132 95 73 51 – –
"""

# 2022 layout: max marks in a prose sentence, one per tier
SAMPLE_2022_TEXT = """\
Cambridge IGCSE Mathematics (0580)
Grade thresholds taken for Syllabus 0580 (Mathematics) in the March 2022 examination.
Component 12 80 - - - 50 38 26 14
Component 22 100 78 62 46 - - - -
The maximum total mark for this syllabus, after weighting has been applied, is 260 for the Extended option and 200 for the Core option.
Overall thresholds
Option A* A B C D E F G
AX 12, 32 – – – 113 84 55 27 13
BX 22, 42 203 165 128 92 70 48 – –
"""

# Additional-Mathematics style: 6 grade columns, untiered
SAMPLE_SIX_GRADE_TEXT = """\
Cambridge IGCSE Additional Mathematics (0606)
Component 12 80 66 52 38 26 18 10
Overall thresholds
Option Maximum mark after weighting A* A B C D E
AX (12, 22) 160 128 104 80 60 44 28
"""

# Untiered with a preferred prefix and a single prose max mark
SAMPLE_UNTIERED_TEXT = """\
Cambridge IGCSE First Language English (0500)
The maximum total mark for this syllabus, after weighting has been applied, is 100.
Overall thresholds
Option A* A B C D E F G
AX 01, 02, 03 90 80 70 60 50 40 30 20
BX 01, 02 88 78 68 58 48 38 28 18
BY 02, 04 86 76 66 56 46 36 26 16
"""


@pytest.fixture
def sample_2023_text() -> str:
    return SAMPLE_2023_TEXT


@pytest.fixture
def sample_2022_text() -> str:
    return SAMPLE_2022_TEXT


@pytest.fixture
def sample_six_grade_text() -> str:
    return SAMPLE_SIX_GRADE_TEXT


@pytest.fixture
def sample_untiered_text() -> str:
    return SAMPLE_UNTIERED_TEXT


@pytest.fixture
def tier_config() -> TierConfig:
    """Small injected tier configuration, independent of the bundled file."""
    return TierConfig(
        tiered={
            "0580": SubjectTierRule(core=("A",), extended=("B",)),
            "0620": SubjectTierRule(core=("F", "G"), extended=("B", "C")),
        },
        preferred_prefix={"0500": "B"},
    )


def add_year(
    repository: InMemoryThresholdRepository,
    subject_id: str,
    year: int,
    marks: dict,
    max_mark: int,
    tier=None,
    season: Season = Season.FM,
) -> None:
    """Store one series of per-grade thresholds."""
    series = repository.upsert_series(year, season)
    repository.upsert_thresholds(
        ThresholdRow(
            subject_id=subject_id,
            series_id=series.series_id,
            tier=tier,
            grade=Grade(grade),
            min_mark=mark,
            max_mark=max_mark,
        )
        for grade, mark in marks.items()
    )


@pytest.fixture
def store_year():
    """Helper that stores one series of thresholds in a repository."""
    return add_year


@pytest.fixture
def seeded_repository() -> InMemoryThresholdRepository:
    """
    Store with 0580 Extended for 2019-2023 (FM) and one MJ series.

    A* is 80% in 2023 and 70% in 2022; all other years only have A..C.
    """
    repository = InMemoryThresholdRepository()
    add_year(repository, "0580", 2023, {"A*": 160, "A": 140, "B": 120, "C": 100}, 200, Tier.EXTENDED)
    add_year(repository, "0580", 2022, {"A*": 140, "A": 130, "B": 110, "C": 90}, 200, Tier.EXTENDED)
    add_year(repository, "0580", 2021, {"A": 120, "B": 100, "C": 80}, 200, Tier.EXTENDED)
    add_year(repository, "0580", 2020, {"A": 124, "B": 104, "C": 84}, 200, Tier.EXTENDED)
    add_year(repository, "0580", 2019, {"A": 126, "B": 106, "C": 86}, 200, Tier.EXTENDED)
    add_year(
        repository, "0580", 2023, {"A*": 190, "A": 170}, 200, Tier.EXTENDED, season=Season.MJ
    )
    return repository
