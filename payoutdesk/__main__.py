"""Run the API server. Usage: python -m payoutdesk"""

import uvicorn

from payoutdesk.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "payoutdesk.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
