"""
Tests for I/O utilities.

Tests CSV parsing of players and baggages, and serialization of results.
"""

import csv
import shutil
import tempfile
import unittest
from pathlib import Path

from roster_ga.data_models import Gender, Individual, Solution
from roster_ga.io_utils import (
    find_individual,
    load_baggages,
    load_individuals,
    save_history_csv,
    save_roster_csv,
)


class TestLoadIndividuals(unittest.TestCase):
    """Test loading rosters from CSV."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, name, text):
        path = self.temp_dir / name
        path.write_text(text)
        return path

    def test_load_simple_csv(self):
        path = self.write("players.csv", "name,rating,gender\nAlice,120.5,f\nBob,98,Male\n")

        individuals = load_individuals(path)

        self.assertEqual(len(individuals), 2)
        self.assertEqual(individuals[0].name, "Alice")
        self.assertEqual(individuals[0].rating, 120.5)
        self.assertEqual(individuals[0].gender, Gender.FEMALE)
        self.assertEqual(individuals[1].gender, Gender.MALE)
        self.assertTrue(all(i.group == 0 and i.paired_with is None for i in individuals))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_individuals(self.temp_dir / "nope.csv")

    def test_missing_columns(self):
        path = self.write("players.csv", "name,score\nAlice,1\n")
        with self.assertRaises(ValueError):
            load_individuals(path)

    def test_bad_gender(self):
        path = self.write("players.csv", "name,rating,gender\nAlice,120,x\n")
        with self.assertRaises(ValueError) as ctx:
            load_individuals(path)
        self.assertIn("row 2", str(ctx.exception))

    def test_bad_rating(self):
        path = self.write("players.csv", "name,rating,gender\nAlice,great,f\n")
        with self.assertRaises(ValueError):
            load_individuals(path)

    def test_duplicate_names(self):
        path = self.write("players.csv", "name,rating,gender\nAlice,1,f\nAlice,2,f\n")
        with self.assertRaises(ValueError):
            load_individuals(path)

    def test_unknown_format(self):
        path = self.write("players.csv", "name,rating,gender\n")
        with self.assertRaises(ValueError):
            load_individuals(path, input_format='xml')

    def test_load_signup_csv(self):
        """Test the signup export layout: names in 1-2, gender in 6, rating in 33."""
        header = [f"col{i}" for i in range(34)]
        row = [""] * 34
        row[1], row[2], row[6], row[33] = "Grace", "Hopper", "Female", "141"
        empty = [""] * 34
        path = self.temp_dir / "signup.csv"
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerows([header, row, empty])

        individuals = load_individuals(path, input_format='signup')

        self.assertEqual(len(individuals), 1)
        self.assertEqual(individuals[0].name, "Grace Hopper")
        self.assertEqual(individuals[0].gender, Gender.FEMALE)
        self.assertEqual(individuals[0].rating, 141.0)

    def test_signup_custom_columns(self):
        path = self.write("signup.csv", "ts,first,last,sex,rating\nx,Alan,Turing,m,128\n")

        individuals = load_individuals(
            path, input_format='signup',
            columns={'first_name': 1, 'last_name': 2, 'gender': 3, 'rating': 4},
        )

        self.assertEqual(individuals[0].name, "Alan Turing")
        self.assertEqual(individuals[0].rating, 128.0)

    def test_signup_short_row(self):
        path = self.write("signup.csv", "a,b,c\nx,y,z\n")
        with self.assertRaises(ValueError):
            load_individuals(path, input_format='signup')


class TestLoadBaggages(unittest.TestCase):
    """Test reading pairing constraints."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.individuals = [
            Individual("Ken Thompson", 137, Gender.MALE),
            Individual("Dennis Ritchie", 111, Gender.MALE),
            Individual("Mary Shaw", 118, Gender.FEMALE),
        ]

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, text):
        path = self.temp_dir / "baggages.csv"
        path.write_text(text)
        return path

    def test_two_column_format(self):
        path = self.write("name,partner\nKen Thompson,Dennis Ritchie\n")

        count = load_baggages(path, self.individuals)

        self.assertEqual(count, 1)
        self.assertEqual(self.individuals[0].paired_with, "Dennis Ritchie")
        self.assertIsNone(self.individuals[1].paired_with)

    def test_four_column_format(self):
        path = self.write("first,last,partner first,partner last\nMary,Shaw,Ken,Thompson\n")

        load_baggages(path, self.individuals)

        self.assertEqual(self.individuals[2].paired_with, "Ken Thompson")

    def test_unknown_individual(self):
        path = self.write("name,partner\nKen Thompson,Bjarne Stroustrup\n")
        with self.assertRaises(ValueError):
            load_baggages(path, self.individuals)

    def test_second_baggage_rejected(self):
        path = self.write(
            "name,partner\nKen Thompson,Dennis Ritchie\nKen Thompson,Mary Shaw\n"
        )
        with self.assertRaises(ValueError):
            load_baggages(path, self.individuals)

    def test_self_baggage_rejected(self):
        path = self.write("name,partner\nMary Shaw,Mary Shaw\n")
        with self.assertRaises(ValueError):
            load_baggages(path, self.individuals)

    def test_bad_row_width(self):
        path = self.write("name,partner\nKen Thompson,Dennis,Ritchie\n")
        with self.assertRaises(ValueError):
            load_baggages(path, self.individuals)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_baggages(self.temp_dir / "nope.csv", self.individuals)

    def test_find_individual(self):
        self.assertIs(find_individual(self.individuals, "Mary Shaw"), self.individuals[2])
        with self.assertRaises(ValueError):
            find_individual(self.individuals, "Nobody")


class TestSaveResults(unittest.TestCase):
    """Test writing the roster and score history."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.solution = Solution([
            Individual("b", 2.0, Gender.MALE, group=1, paired_with="a"),
            Individual("a", 1.0, Gender.FEMALE, group=1),
            Individual("c", 3.0, Gender.MALE, group=0),
        ], num_groups=2, score=0.5)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_save_roster_csv(self):
        path = save_roster_csv(self.solution, self.temp_dir / "out" / "roster.csv")

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))

        self.assertEqual([r['name'] for r in rows], ["c", "a", "b"])
        self.assertEqual(rows[2]['paired_with'], "a")
        self.assertEqual(rows[0]['group'], "0")
        self.assertEqual(rows[1]['gender'], "female")

    def test_save_roster_no_overwrite(self):
        path = save_roster_csv(self.solution, self.temp_dir / "roster.csv")
        with self.assertRaises(FileExistsError):
            save_roster_csv(self.solution, path)
        save_roster_csv(self.solution, path, overwrite=True)

    def test_save_history_csv(self):
        path = save_history_csv([3.0, 2.5, 2.5], self.temp_dir / "history.csv")

        with open(path, newline='') as f:
            rows = list(csv.reader(f))

        self.assertEqual(rows[0], ['generation', 'best_score'])
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[3], ['2', '2.5'])


if __name__ == '__main__':
    unittest.main()
