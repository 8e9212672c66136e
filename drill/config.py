"""Configuration constants for flashdrill."""

# Card settings bounds
MIN_CARDS_PER_SET = 1
MAX_CARDS_PER_SET = 100
MIN_STREAK_LENGTH = 1
MAX_STREAK_LENGTH = 50

# Card settings defaults
DEFAULT_CARDS_PER_SET = 10
DEFAULT_STREAK_LENGTH = 5   # Consecutive correct answers to mark a card learned

# Answer checking methods
METHOD_MANUAL = 'manual'            # Learner types the answer
METHOD_SELF_REVIEW = 'self_review'  # Learner reveals the answer and judges themselves
ANSWER_METHODS = (METHOD_MANUAL, METHOD_SELF_REVIEW)
DEFAULT_ANSWER_METHOD = METHOD_MANUAL

# Profile names double as file names
PROFILE_NAME_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

# Card validation
MAX_WORD_NAME_LENGTH = 200

# Repeat drills: max learned cards per run (None = all learned cards)
REPEAT_BATCH_SIZE = None
