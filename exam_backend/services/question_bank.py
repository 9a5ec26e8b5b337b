import json
import random
from pathlib import Path
from typing import Dict, List, Optional

QUESTION_BANK_PATH = Path(__file__).resolve().parents[1] / "data" / "questions.json"


def load_question_bank(path: Optional[Path] = None) -> List[Dict]:
    """
    Load the fixed question bank.

    Each entry has ``id``, ``question``, ``options`` and ``correct`` (the
    text of the correct option).
    """
    with open(path or QUESTION_BANK_PATH, encoding="utf-8") as f:
        questions = json.load(f)

    if not isinstance(questions, list):
        raise ValueError("Question bank must be a JSON list")
    for q in questions:
        if q.get("correct") not in q.get("options", []):
            raise ValueError(f"Question {q.get('id')} has no matching correct option")
    return questions


def sample_questions(bank: List[Dict], count: int, rng: Optional[random.Random] = None) -> List[Dict]:
    """Random sample without replacement, in random presentation order."""
    rng = rng or random.Random()
    if count > len(bank):
        raise ValueError(f"Question bank has only {len(bank)} questions, {count} requested")
    return rng.sample(bank, count)
