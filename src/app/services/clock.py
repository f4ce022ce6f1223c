from datetime import datetime
from typing import Callable
from src.domain.base import utcnow

Clock = Callable[[], datetime]

system_clock: Clock = utcnow
