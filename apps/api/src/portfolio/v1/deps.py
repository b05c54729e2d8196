from starlette.requests import Request

from portfolio.content import ContentService


def get_content_service(request: Request) -> ContentService:
    return request.app.state.content_service
