from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class Hint(BaseModel):
    quiz_id: str
    question_id: str
    text: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None
