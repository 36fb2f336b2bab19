"""HTTP host exposing one browser session over ``POST /execute``."""
from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from vowser.src.browser.base import BrowserActionError, BrowserControl

logger = logging.getLogger(__name__)

# actions that operate on an element and therefore need a selector
_SELECTOR_ACTIONS = {"click", "type", "wait_for_selector", "get_select_options", "select_option"}


class ExecuteRequest(BaseModel):
    action: str = Field(..., description="Browser operation, e.g. 'navigate' or 'click'.")
    params: Dict[str, Any] = Field(default_factory=dict, description="Parameters for the operation.")


async def _dispatch(browser: BrowserControl, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
    selector = params.get("selector", "")
    if action in _SELECTOR_ACTIONS and not selector:
        raise HTTPException(status_code=400, detail=f"selector is required for action '{action}'.")

    if action == "navigate":
        url = params.get("url")
        if not url:
            raise HTTPException(status_code=400, detail="url is required for 'navigate'.")
        await browser.navigate(url)
        return {"success": True, "message": f"Navigated to {url}"}
    if action == "click":
        await browser.click(selector, timeout_ms=params.get("timeout_ms"))
        return {"success": True, "message": f"Clicked {selector}"}
    if action == "type":
        await browser.type(selector, str(params.get("value", "")))
        return {"success": True, "message": f"Typed into {selector}"}
    if action == "wait_for_selector":
        await browser.wait_for_selector(selector, timeout_ms=params.get("timeout_ms"))
        return {"success": True, "message": f"Found {selector}"}
    if action == "wait_for_network_idle":
        await browser.wait_for_network_idle()
        return {"success": True, "message": "Network idle"}
    if action == "evaluate":
        script = params.get("script")
        if not script:
            raise HTTPException(status_code=400, detail="script is required for 'evaluate'.")
        result = await browser.evaluate(script, params.get("arg"))
        return {"success": True, "result": result}
    if action == "get_select_options":
        options = await browser.get_select_options(selector)
        return {"success": True, "options": [option.to_wire() for option in options]}
    if action == "select_option":
        await browser.select_option(selector, str(params.get("value", "")))
        return {"success": True, "message": f"Selected option in {selector}"}

    raise HTTPException(status_code=400, detail=f"Action '{action}' not supported.")


def create_app(browser: BrowserControl) -> FastAPI:
    """Build the host app around an already constructed browser.

    The browser is started on application startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("[BrowserHost] Starting browser")
        await browser.start()
        try:
            yield
        finally:
            logger.info("[BrowserHost] Stopping browser")
            await browser.close()

    app = FastAPI(title="Vowser Browser Host", lifespan=lifespan)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/execute")
    async def execute(request: ExecuteRequest) -> Dict[str, Any]:
        try:
            return await _dispatch(browser, request.action, request.params)
        except BrowserActionError as exc:
            logger.warning("[BrowserHost] %s failed: %s", request.action, exc)
            return {"success": False, "message": str(exc)}

    return app


def serve(host: str = "127.0.0.1", port: int = 8001) -> None:
    """Run a Playwright-backed host under uvicorn until interrupted."""
    import uvicorn

    from vowser.src.browser.playwright_browser import PlaywrightBrowser

    app = create_app(PlaywrightBrowser())
    uvicorn.run(app, host=host, port=int(port), log_level="info")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Vowser browser host (FastAPI)")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8001, help="Port (default: 8001)")
    args = parser.parse_args(argv)
    serve(args.host, args.port)


if __name__ == "__main__":
    main()
