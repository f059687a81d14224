"""HTTP routes for bulk parsing, incremental parsing and line syntax checks."""

from __future__ import annotations

import logging

from aiohttp import web

from blockmark.models import ParseRequest, ParseResponse, parse_request_from_dict
from blockmark.parser import MarkdownParser

logger = logging.getLogger(__name__)


def _failure(status: int, message: str) -> web.Response:
    body = ParseResponse(success=False, error=message).to_dict()
    return web.json_response(body, status=status)


async def _read_parse_request(request: web.Request) -> ParseRequest:
    """Decode the JSON body; raise ``ValueError`` when it is malformed."""
    data = await request.json()
    return parse_request_from_dict(data)


def setup_routes(app: web.Application) -> None:
    """Register the ``/api`` routes on ``app`` with a shared markdown parser."""
    parser = MarkdownParser()

    async def parse_markdown(request: web.Request) -> web.Response:
        try:
            parse_request = await _read_parse_request(request)
        except ValueError as exc:
            return _failure(400, f"Invalid request format: {exc}")
        try:
            response = parser.parse(parse_request.content)
        except Exception as exc:  # reported to the caller as a server error
            logger.exception("parse failed")
            return _failure(500, f"Failed to parse markdown: {exc}")
        if parse_request.format == "ast":
            response.ast = response.blocks
        return web.json_response(response.to_dict())

    async def parse_incremental(request: web.Request) -> web.Response:
        try:
            parse_request = await _read_parse_request(request)
        except ValueError as exc:
            return _failure(400, f"Invalid request format: {exc}")
        try:
            response = parser.parse_incremental(
                parse_request.content, parse_request.block_id
            )
        except Exception as exc:  # reported to the caller as a server error
            logger.exception("incremental parse failed")
            return _failure(500, f"Failed to parse markdown incrementally: {exc}")
        return web.json_response(response.to_dict())

    async def check_syntax(request: web.Request) -> web.Response:
        syntax = request.match_info.get("syntax", "")
        if not syntax:
            return web.json_response(
                {"error": "Syntax parameter is required"}, status=400
            )
        detected = parser.detect_notion_syntax(syntax)
        return web.json_response(
            {
                "syntax": syntax,
                "detected_type": detected,
                "is_block": detected != "paragraph",
            }
        )

    app.router.add_post("/api/parse", parse_markdown)
    app.router.add_post("/api/parse-incremental", parse_incremental)
    app.router.add_get("/api/syntax-check/{syntax}", check_syntax)