"""
I/O utilities for the roster balancer.

Handles CSV parsing of individuals and baggage (pairing) constraints, and
serialization of the final roster and score history.
"""

import csv
from pathlib import Path
from typing import Dict, List, Optional, Union

from .data_models import Individual, Solution, parse_gender

SIMPLE_COLUMNS = ['name', 'rating', 'gender']

# Column positions in the league signup form export
SIGNUP_COLUMNS = {
    'first_name': 1,
    'last_name': 2,
    'gender': 6,
    'rating': 33,
}


def _parse_rating(value: str, row_number: int, csv_path: Path) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid rating '{value}' on row {row_number} of {csv_path}")


def _parse_gender_cell(value: str, row_number: int, csv_path: Path):
    try:
        return parse_gender(value)
    except ValueError as e:
        raise ValueError(f"{e} on row {row_number} of {csv_path}")


def load_simple_csv(csv_path: Path) -> List[Individual]:
    """
    Load individuals from a simple CSV.

    CSV format:
        name,rating,gender
        Alice Smith,120.5,f
        Bob Jones,98,m
    """
    individuals = []
    with open(csv_path, 'r', newline='') as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None or not all(col in reader.fieldnames for col in SIMPLE_COLUMNS):
            raise ValueError(f"Invalid CSV format in {csv_path}. Expected columns: name,rating,gender")

        for row_number, row in enumerate(reader, start=2):
            individuals.append(Individual(
                name=row['name'].strip(),
                rating=_parse_rating(row['rating'], row_number, csv_path),
                gender=_parse_gender_cell(row['gender'], row_number, csv_path),
            ))
    return individuals


def load_signup_csv(csv_path: Path, columns: Optional[Dict[str, int]] = None) -> List[Individual]:
    """
    Load individuals from a league signup form export.

    The header row is skipped. Fields are read by position; the defaults are
    first name in column 1, last name in column 2, gender ("Male"/"Female")
    in column 6 and rating in column 33.

    Args:
        csv_path: Path to the export
        columns: Overrides for any of the column positions
    """
    positions = dict(SIGNUP_COLUMNS)
    if columns:
        positions.update(columns)
    needed = max(positions.values()) + 1

    individuals = []
    with open(csv_path, 'r', newline='') as f:
        reader = csv.reader(f)
        if next(reader, None) is None:
            raise ValueError(f"Empty signup file: {csv_path}")

        for row_number, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            if len(row) < needed:
                raise ValueError(
                    f"Row {row_number} of {csv_path} has {len(row)} columns, expected at least {needed}"
                )
            name = f"{row[positions['first_name']].strip()} {row[positions['last_name']].strip()}"
            individuals.append(Individual(
                name=name,
                rating=_parse_rating(row[positions['rating']], row_number, csv_path),
                gender=_parse_gender_cell(row[positions['gender']], row_number, csv_path),
            ))
    return individuals


def load_individuals(
    csv_path: Union[str, Path],
    input_format: str = 'simple',
    columns: Optional[Dict[str, int]] = None
) -> List[Individual]:
    """
    Load the roster from a CSV file.

    Args:
        csv_path: Path to CSV file
        input_format: "simple" or "signup"
        columns: Column positions for the signup format

    Returns:
        Individuals, all assigned to group 0

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If CSV format is invalid or names repeat
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    if input_format == 'simple':
        individuals = load_simple_csv(csv_path)
    elif input_format == 'signup':
        individuals = load_signup_csv(csv_path, columns)
    else:
        raise ValueError(f"Unknown input format: '{input_format}'")

    seen = set()
    for individual in individuals:
        if individual.name in seen:
            raise ValueError(f"Duplicate name in {csv_path}: {individual.name}")
        seen.add(individual.name)

    return individuals


def find_individual(individuals: List[Individual], name: str) -> Individual:
    """
    Raises:
        ValueError: If nobody has that name
    """
    for individual in individuals:
        if individual.name == name:
            return individual
    raise ValueError(f"Unknown individual: {name}")


def load_baggages(csv_path: Union[str, Path], individuals: List[Individual]) -> int:
    """
    Read pairing constraints and set paired_with on the individuals.

    The header row is skipped. Rows hold either two full names
    (name, partner) or four name parts
    (first name, last name, partner first name, partner last name).

    Args:
        csv_path: Path to the baggage CSV
        individuals: Roster to update in place

    Returns:
        Number of constraints read

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If a row is malformed, names an unknown individual, or
            gives an individual a second baggage
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"Baggage file not found: {csv_path}")

    count = 0
    with open(csv_path, 'r', newline='') as f:
        reader = csv.reader(f)
        next(reader, None)

        for row_number, row in enumerate(reader, start=2):
            cells = [cell.strip() for cell in row]
            if not any(cells):
                continue
            if len(cells) == 2:
                name, partner_name = cells
            elif len(cells) == 4:
                name = f"{cells[0]} {cells[1]}"
                partner_name = f"{cells[2]} {cells[3]}"
            else:
                raise ValueError(
                    f"Row {row_number} of {csv_path} has {len(cells)} columns, expected 2 or 4"
                )

            individual = find_individual(individuals, name)
            find_individual(individuals, partner_name)
            if individual.name == partner_name:
                raise ValueError(f"{name} cannot be their own baggage")
            if individual.has_baggage():
                raise ValueError(
                    f"{individual.name} already has baggage {individual.paired_with}"
                )
            individual.paired_with = partner_name
            count += 1

    return count


def save_roster_csv(
    solution: Solution,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save the final assignment to CSV, sorted by group then name.

    CSV format:
        group,name,gender,rating,paired_with

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['group', 'name', 'gender', 'rating', 'paired_with'])
        for individual in sorted(solution.individuals, key=lambda i: (i.group, i.name)):
            writer.writerow([
                individual.group,
                individual.name,
                individual.gender.value,
                individual.rating,
                individual.paired_with or '',
            ])

    return output_path


def save_history_csv(
    history: List[float],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save best score per generation. Generation 0 is the calibrated start.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['generation', 'best_score'])
        for generation, score in enumerate(history):
            writer.writerow([generation, score])

    return output_path
