"""
StackIt Backend — ORM Model Registry
=====================================

Importing this package registers every table on `Base.metadata`, which lets
string-based relationships resolve across modules and gives Alembic and the
test suite a single import for the full schema.
"""

from app.models.user import User
from app.models.tag import Tag, question_tags
from app.models.question import Question
from app.models.answer import Answer, AnswerComment, AnswerEdit
from app.models.vote import AnswerVote, QuestionVote
from app.models.notification import Notification

__all__ = [
    "User",
    "Tag",
    "question_tags",
    "Question",
    "Answer",
    "AnswerComment",
    "AnswerEdit",
    "QuestionVote",
    "AnswerVote",
    "Notification",
]
