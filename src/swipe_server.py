"""
Swipe Deck Server

Runs the swipe session API (see api.app) with uvicorn.

Endpoints:
- POST /api/swipe/sessions                   - Deal a ranked deck
- POST /api/swipe/sessions/{id}/gesture      - Apply a drag (like / pass / cart / details)
- POST /api/swipe/sessions/{id}/decide       - Like or add to cart from the details sheet
- POST /api/swipe/sessions/{id}/undo         - Put the last card back
- GET  /api/swipe/sessions/{id}/similar      - You might also like
- GET  /api/swipe/sessions/{id}/notifications - Pending toasts
"""

import uvicorn

from config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development and settings.debug,
    )


if __name__ == "__main__":
    main()
