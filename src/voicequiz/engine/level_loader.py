"""YAML level parser for VoiceQuiz."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from voicequiz.engine.errors import LevelFormatError

LEVEL_FILE = "level.yaml"


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: str
    image_url: str = ""


@dataclass
class Level:
    id: str
    number: int
    title: str
    theme: str = ""
    image_url: str = ""
    questions: list[Question] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)


def _parse_options(raw, where: str) -> tuple[str, ...]:
    if isinstance(raw, str):
        options = [o.strip() for o in raw.split(";")]
    elif isinstance(raw, list):
        # Unquoted YAML scalars such as Yes, No or ~ load as bool/None.
        if not all(isinstance(o, str) for o in raw):
            raise LevelFormatError(f"{where}: answer choices must be text (quote values like Yes, No or numbers)")
        options = [o.strip() for o in raw]
    else:
        raise LevelFormatError(f"{where}: AnswerChoices must be a list or a ';'-separated string")

    if not all(options):
        raise LevelFormatError(f"{where}: answer choices must not be blank")
    if len(options) < 2:
        raise LevelFormatError(f"{where}: needs at least two answer choices")
    if len(set(options)) != len(options):
        raise LevelFormatError(f"{where}: answer choices must be unique")
    return tuple(options)


def parse_question(raw: dict, where: str, default_id: str) -> Question:
    text = raw.get("Question")
    if not text:
        raise LevelFormatError(f"{where}: missing Question")

    options = _parse_options(raw.get("AnswerChoices"), where)
    correct = raw.get("CorrectAnswer")
    if correct is None:
        raise LevelFormatError(f"{where}: missing CorrectAnswer")
    correct = str(correct)
    # Exact membership: answers are compared case-sensitively.
    if correct not in options:
        raise LevelFormatError(f"{where}: CorrectAnswer {correct!r} is not one of the answer choices")

    return Question(
        id=str(raw.get("Id", default_id)),
        text=text,
        options=options,
        correct_answer=correct,
        image_url=raw.get("Image", ""),
    )


def load_level(level_dir: Path) -> Level:
    """Load a level.yaml from a level directory."""
    level_file = level_dir / LEVEL_FILE
    try:
        with open(level_file) as f:
            raw_items = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LevelFormatError(f"{level_file}: invalid YAML: {e}") from e

    if not isinstance(raw_items, list) or not raw_items:
        raise LevelFormatError(f"{level_file}: expected a non-empty list of entries")

    meta = raw_items[0]
    if not isinstance(meta, dict) or meta.get("Class") != "meta":
        raise LevelFormatError(f"{level_file}: first entry must be the meta entry")

    number = meta.get("Level")
    if not isinstance(number, int) or isinstance(number, bool) or number <= 0:
        raise LevelFormatError(f"{level_file}: Level must be a positive integer")

    questions: list[Question] = []
    for idx, raw in enumerate(raw_items[1:], start=1):
        if not isinstance(raw, dict):
            raise LevelFormatError(f"{level_file}: entry {idx} is not a mapping")
        cls = raw.get("Class", "question")
        if cls != "question":
            raise LevelFormatError(f"{level_file}: entry {idx} has unknown Class {cls!r}")
        questions.append(
            parse_question(raw, where=f"{level_file} entry {idx}", default_id=f"{level_dir.name}-{idx}")
        )

    return Level(
        id=level_dir.name,
        number=number,
        title=meta.get("Title", ""),
        theme=meta.get("Theme", ""),
        image_url=meta.get("Image", ""),
        questions=questions,
    )
