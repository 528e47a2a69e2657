from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from typing import Optional
import logging
import os
from dotenv import load_dotenv
from contextlib import asynccontextmanager
from swapquote.config import Settings
from swapquote.errors import InvalidRequestError, QuoteFetchError
from swapquote.models import Quote
from swapquote.quote_cache import QuoteCache
from swapquote.quote_fetcher import QuoteFetcher
from swapquote.quote_service import QuoteService
from swapquote.tokens import TOKEN_ADDRESSES

if os.path.exists('.dev.env'):
    load_dotenv('.dev.env')

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

router = APIRouter()


def build_quote_service(settings: Settings) -> QuoteService:
    """Create the process-wide cache and fetcher and wire them into a service."""
    cache = QuoteCache(ttl=settings.cache_ttl_seconds)
    fetcher = QuoteFetcher(
        timeout=settings.fetch_timeout_seconds,
        settle_delay=settings.settle_delay_seconds
    )
    return QuoteService(cache, fetcher, swap_url_template=settings.swap_url_template)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler - runs on startup and shutdown."""
    # Startup: build the quote service unless one was injected
    if app.state.quote_service is None:
        app.state.quote_service = build_quote_service(settings)

    yield


def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service


@router.get("/", response_model=Quote)
def get_token_price(
    input_token: Optional[str] = Query(None, alias="input", description="Input token symbol"),
    output_token: Optional[str] = Query(None, alias="output", description="Output token symbol"),
    amount: Optional[str] = Query(None, description="Input amount"),
    service: QuoteService = Depends(get_quote_service)
) -> Quote:
    """
    Get the exchange rate for swapping amount of input into output.

    Returns:
        Quote with input/output amounts, exchange rate and timestamp

    Raises:
        InvalidRequestError: Rendered as 400
        QuoteFetchError: Rendered as 500
    """
    return service.get_quote(input_token, output_token, amount)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/tokens")
def list_tokens():
    return {"tokens": TOKEN_ADDRESSES}


async def _invalid_request_handler(_: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _fetch_error_handler(_: Request, exc: QuoteFetchError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(quote_service: Optional[QuoteService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        quote_service: Service to use instead of one built from settings
    """
    app = FastAPI(
        title="swapquote",
        description="Token exchange rates scraped from the Kuru swap page",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.quote_service = quote_service
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(QuoteFetchError, _fetch_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))
