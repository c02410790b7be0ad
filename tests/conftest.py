"""Shared fixtures for VoiceQuiz tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from voicequiz.config.settings import Settings
from voicequiz.engine.level_loader import Level, Question
from voicequiz.levels.registry import LevelRegistry
from voicequiz.state.progress import ProgressStore


def write_level(levels_dir: Path, name: str, entries: list) -> Path:
    level_dir = levels_dir / name
    level_dir.mkdir(parents=True)
    with open(level_dir / "level.yaml", "w") as f:
        yaml.dump(entries, f)
    return level_dir


def make_level(n_questions: int = 5, number: int = 1) -> Level:
    """An in-memory level whose correct answer is always the first option."""
    questions = [
        Question(
            id=f"q{i}",
            text=f"Question {i}?",
            options=(f"Right{i}", f"Wrong{i}", "Other"),
            correct_answer=f"Right{i}",
        )
        for i in range(1, n_questions + 1)
    ]
    return Level(id=f"level_{number}", number=number, title=f"Level {number}", questions=questions)


@pytest.fixture
def levels_dir(tmp_path):
    """Create a minimal two-level catalogue for testing."""
    levels_dir = tmp_path / "levels"
    levels_dir.mkdir()

    write_level(levels_dir, "01_restaurant", [
        {"Class": "meta", "Level": 1, "Title": "Restaurant Basics", "Theme": "Dining"},
        {
            "Class": "question",
            "Id": "menu",
            "Question": "What is the list of food items called?",
            "AnswerChoices": "Menu;Bill;Receipt;Order",
            "CorrectAnswer": "Menu",
        },
        {
            "Class": "question",
            "Id": "waiter",
            "Question": "Who serves food at a restaurant?",
            "AnswerChoices": ["Waiter", "Chef", "Manager", "Cashier"],
            "CorrectAnswer": "Waiter",
        },
        {
            "Class": "question",
            "Id": "tip",
            "Question": "What is the extra money given to staff called?",
            "AnswerChoices": "Tip;Tax;Fee;Charge",
            "CorrectAnswer": "Tip",
        },
    ])
    write_level(levels_dir, "02_travel", [
        {"Class": "meta", "Level": 2, "Title": "Travel & Airport", "Theme": "Travel"},
        {
            "Class": "question",
            "Question": "What document do you need to travel abroad?",
            "AnswerChoices": "Passport;License;Ticket;Map",
            "CorrectAnswer": "Passport",
        },
    ])
    return levels_dir


@pytest.fixture
def registry(levels_dir):
    return LevelRegistry(levels_dir=levels_dir)


@pytest.fixture
def progress(tmp_path):
    return ProgressStore(db_path=tmp_path / "data" / "progress.db")


@pytest.fixture
def settings(tmp_path, levels_dir):
    return Settings(data_dir=tmp_path / "data", levels_dir=levels_dir)
