from .user import User
from .extension_token import ExtensionToken
from .problem import Problem, ProblemStatus
from .submission import Submission
from .submission_error import SubmissionError
from .solution_version import SolutionVersion
from .tag import Tag, problem_tags
from .statistics import Statistics
from .activity import Activity

__all__ = [
    'User',
    'ExtensionToken',
    'Problem',
    'ProblemStatus',
    'Submission',
    'SubmissionError',
    'SolutionVersion',
    'Tag',
    'problem_tags',
    'Statistics',
    'Activity',
]
