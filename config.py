# config.py
import os

# ======= Board =======
GRID_SIZE = int(os.getenv("MC_GRID_SIZE", "9"))

# ======= Primary solve budget =======
# "Find any solution" asks for one placement; the enumerate mode asks for a
# handful.  Timeouts are wall clock from search start, in milliseconds.
MAX_SOLUTIONS            = int(os.getenv("MC_MAX_SOLUTIONS", "1"))
ENUMERATE_MAX_SOLUTIONS  = int(os.getenv("MC_ENUMERATE_MAX_SOLUTIONS", "5"))
HTTP_MAX_SOLUTIONS_CAP   = int(os.getenv("MC_HTTP_MAX_SOLUTIONS_CAP", "50"))
SOLVE_TIMEOUT_MS         = int(os.getenv("MC_SOLVE_TIMEOUT_MS", "15000"))

# ======= Best-score search =======
OPTIMAL_MAX_SOLUTIONS = int(os.getenv("MC_OPTIMAL_MAX_SOLUTIONS", "50"))

# ======= Candidate fit scan =======
FIT_TIMEOUT_MS   = int(os.getenv("MC_FIT_TIMEOUT_MS", "1500"))
FIT_YIELD_EVERY  = int(os.getenv("MC_FIT_YIELD_EVERY", "3"))

# ======= Logging =======
ATTEMPT_LOG = os.getenv("MC_ATTEMPT_LOG", "")

class CFG:
    GRID_SIZE = GRID_SIZE

    MAX_SOLUTIONS           = MAX_SOLUTIONS
    ENUMERATE_MAX_SOLUTIONS = ENUMERATE_MAX_SOLUTIONS
    HTTP_MAX_SOLUTIONS_CAP  = HTTP_MAX_SOLUTIONS_CAP
    SOLVE_TIMEOUT_MS        = SOLVE_TIMEOUT_MS

    OPTIMAL_MAX_SOLUTIONS = OPTIMAL_MAX_SOLUTIONS

    FIT_TIMEOUT_MS  = FIT_TIMEOUT_MS
    FIT_YIELD_EVERY = FIT_YIELD_EVERY

    ATTEMPT_LOG = ATTEMPT_LOG


__all__ = ["CFG"]
