import uuid


def generate_quiz_id() -> str:
    return f"quiz_{uuid.uuid4().hex}"


def generate_submission_id() -> str:
    return f"sub_{uuid.uuid4().hex}"


def generate_hint_id() -> str:
    return f"hint_{uuid.uuid4().hex}"
