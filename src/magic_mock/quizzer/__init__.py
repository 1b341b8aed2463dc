from ._main import build_arg_parser
from .errors import (
    ProviderError,
    QuizError,
    QuizGenerationError,
    QuizValidationError,
    TranslationMismatch,
)
from .history import HistoryError, HistoryStore, SortOption, open_history
from .models import (
    Difficulty,
    Folder,
    Question,
    QuestionKind,
    QuestionType,
    Quiz,
    QuizResult,
    QuizSettings,
)
from .pipeline import describe_failure, generate_quiz
from .provider import ContentProvider, OpenAIContentProvider
from .request import GenerationRequest, build_request
from .session import QuizSession, SessionState
from .validator import IssueCode, ValidationResult, validate_quiz
from .view.quiz import QuizApp, QuestionView

__all__ = [
    "build_arg_parser",
    "ProviderError",
    "QuizError",
    "QuizGenerationError",
    "QuizValidationError",
    "TranslationMismatch",
    "HistoryError",
    "HistoryStore",
    "SortOption",
    "open_history",
    "Difficulty",
    "Folder",
    "Question",
    "QuestionKind",
    "QuestionType",
    "Quiz",
    "QuizResult",
    "QuizSettings",
    "describe_failure",
    "generate_quiz",
    "ContentProvider",
    "OpenAIContentProvider",
    "GenerationRequest",
    "build_request",
    "QuizSession",
    "SessionState",
    "IssueCode",
    "ValidationResult",
    "validate_quiz",
    "QuizApp",
    "QuestionView",
]
