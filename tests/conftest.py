from pathlib import Path

import pytest

from mkulima_survey.catalog import QuestionCatalog

CATALOG_PATH = Path(__file__).resolve().parent.parent / "catalog" / "questions.yaml"

AI_LABEL = "How useful is an AI assistant that speaks local terms? (1–5)"

# Smallest catalog that exercises the user-type discriminator: two required
# profile questions and one optional farmer-only scale question.
MINI_RECORDS = [
    {
        "qid": "profile_county",
        "section": "profile",
        "question_type": "dropdown",
        "label": "County *",
        "options": ["Nairobi", "Kiambu"],
        "required": True,
    },
    {
        "qid": "profile_user_type",
        "section": "profile",
        "question_type": "dropdown",
        "label": "User type *",
        "options": ["Farmer", "Agricultural Expert", "Administrator"],
        "required": True,
    },
    {
        "qid": "farmer_ai_assistant_usefulness",
        "section": "farmer",
        "question_type": "scale",
        "label": AI_LABEL,
        "conditional": "profile.userType:Farmer",
    },
]

# Every required question of the full catalog answered for a farmer (by qid)
FARMER_ANSWERS = {
    "profile_county": "Nairobi",
    "profile_user_type": "Farmer",
    "profile_age": "25-34",
    "profile_device_access": "Smartphone",
    "problems_crop_loss_frequency": "Most seasons",
    "problems_expert_contact_count": "0",
}


@pytest.fixture(scope="session")
def catalog():
    """The shipped YAML catalog, loaded once."""
    return QuestionCatalog.from_yaml(CATALOG_PATH)


@pytest.fixture
def mini_catalog():
    return QuestionCatalog.from_records(MINI_RECORDS)


@pytest.fixture
def farmer_answers():
    """Fresh copy so tests can mutate it."""
    return dict(FARMER_ANSWERS)
