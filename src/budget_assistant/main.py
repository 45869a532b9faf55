import os

import uvicorn

from budget_assistant.core import settings
from budget_assistant.logger import get_logging_config


def run() -> None:
    uvicorn.run(
        "budget_assistant.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=settings.get_env_int("PORT", 8000, min_value=1),
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    run()
