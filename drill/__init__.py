from .models import Card, CardSettings, CardType, MasteryTransition, Meaning, TestResult, Word, check_profile_name
from .errors import (
    DrillError, InvalidSettings, InvalidCard, InvalidSessionStart, InvalidProfile,
    EmptyCardPool, InvalidEvaluationInput, IllegalTransition, CardsCheckedOut
)
from .evaluator import accepted_answers, check_answer, evaluate, normalize_answer
from .session import Event, EventKind, Phase, SessionEngine, SessionStep, SetOutcome
from .repeat import RepeatEngine
from .interfaces import CardRepository, SettingsRepository
from .service import DrillService

__all__ = [
    'Card', 'CardSettings', 'CardType', 'MasteryTransition', 'Meaning', 'TestResult', 'Word', 'check_profile_name',
    'DrillError', 'InvalidSettings', 'InvalidCard', 'InvalidSessionStart', 'InvalidProfile',
    'EmptyCardPool', 'InvalidEvaluationInput', 'IllegalTransition', 'CardsCheckedOut',
    'accepted_answers', 'check_answer', 'evaluate', 'normalize_answer',
    'Event', 'EventKind', 'Phase', 'SessionEngine', 'SessionStep', 'SetOutcome',
    'RepeatEngine',
    'CardRepository', 'SettingsRepository',
    'DrillService'
]
