"""Shared test fixtures for plotrecon."""

import csv
import json

import pytest

from plotrecon.store import InMemoryStore

PLOT_FIELDS = [
    "id", "section", "row_number", "plot_number", "status",
    "first_name", "last_name", "family_name", "birth_date", "death_date",
    "notes", "created_date", "updated_date",
]


def plot(id, plot_number, section="Section 1", row_number="", status="Available", **extra):
    """Build a plot row dict with every field present."""
    row = {f: "" for f in PLOT_FIELDS}
    row.update(
        id=id,
        section=section,
        row_number=row_number,
        plot_number=plot_number,
        status=status,
    )
    row.update(extra)
    return row


@pytest.fixture
def section_one_rows():
    """Section 1 plots with two duplicate groups (7 and 12) and noise."""
    return [
        # plot 7: imported placeholder vs occupied record with a name
        plot("x7", "107", status="Available", notes="Imported",
             updated_date="2023-01-01T00:00:00Z"),
        plot("y7", "107", status="Occupied", first_name="John", last_name="Doe",
             updated_date="2024-06-01T00:00:00Z"),
        # plot 12: three copies, differing only in section label and recency
        plot("a12", "12", section="1", status="Reserved",
             updated_date="2024-01-01T00:00:00Z"),
        plot("b12", "12", section="Section 1", status="Reserved",
             updated_date="2023-01-01T00:00:00Z"),
        plot("c12", "12", section="", status="Reserved",
             updated_date="2025-01-01T00:00:00Z"),
        # singletons
        plot("s1", "1", status="Available"),
        plot("s2", "2", status="Occupied", last_name="Smith"),
        # out of scope: other section, unparseable, out of range
        plot("o1", "107", section="Section 2", status="Occupied"),
        plot("u1", "N/A"),
        plot("r1", "999"),
    ]


@pytest.fixture
def plot_store(section_one_rows):
    return InMemoryStore(section_one_rows, entity="Plot")


@pytest.fixture
def a1_plots():
    """Authoritative A-1 plots holding 101..130."""
    return [
        plot(f"p{n}", str(n), row_number=f"A-{n}", status="Occupied")
        for n in range(101, 131)
    ]


@pytest.fixture
def staging_rows():
    """Staging rows: two candidates for 131, none for 132, plus noise."""
    return [
        plot("n131a", "A1-31", section="", status="Available"),
        plot("n131b", "131", row_number="A-131", status="Occupied",
             first_name="Mary", last_name="Major", death_date="1950-02-03"),
        plot("n105", "A105", status="Occupied", first_name="Already"),
        plot("b7", "7", row_number="B-7", status="Occupied", first_name="Other"),
    ]


@pytest.fixture
def deceased_rows():
    return [
        {"id": "d1", "first_name": "Ann ", "last_name": "Lee", "date_of_birth": "1901-01-01",
         "date_of_death": "1980-05-05", "obituary": "", "updated_date": "2022-01-01T00:00:00Z"},
        {"id": "d2", "first_name": "ann", "last_name": "LEE", "date_of_birth": "1901-01-01",
         "date_of_death": "1980-05-05", "obituary": "Long text", "burial_plot": "107",
         "updated_date": "2021-01-01T00:00:00Z"},
        {"id": "d3", "first_name": "Bo", "last_name": "Lee", "date_of_birth": "",
         "date_of_death": "", "obituary": "", "updated_date": ""},
    ]


def _write_csv(path, rows):
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=PLOT_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
    return str(path)


@pytest.fixture
def plots_csv(tmp_path, section_one_rows):
    return _write_csv(tmp_path / "plots.csv", section_one_rows)


@pytest.fixture
def a1_plots_csv(tmp_path, a1_plots):
    return _write_csv(tmp_path / "a1_plots.csv", a1_plots)


@pytest.fixture
def staging_csv(tmp_path, staging_rows):
    return _write_csv(tmp_path / "newplots.csv", staging_rows)


@pytest.fixture
def deceased_json(tmp_path, deceased_rows):
    path = tmp_path / "deceased.json"
    path.write_text(json.dumps(deceased_rows))
    return str(path)
