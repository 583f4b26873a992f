"""
deps.py – Dependency Injection: singleton service instances.
Built once at import time; routes only use the getters.
"""
from .config import settings
from .core.behaviours import BehaviourRegistry, registry
from .core.gemini import ReviewSuggestionService
from .core.prompt import ReviewPromptBuilder
from .core.repository import ShopRepository
from .handlers.category_handler import CategoryHandler
from .handlers.places_handler import PlacesHandler
from .handlers.review_handler import ReviewHandler
from .handlers.search_handler import SearchHandler
from .handlers.suggest_handler import SuggestHandler

# ── Core singletons ────────────────────────────────────────────────────────────

_repo      = ShopRepository(settings.database_url)
_review_ai = ReviewSuggestionService(
    api_key=settings.gemini_api_key,
    model_name=settings.gemini_model,
    prompt_builder=ReviewPromptBuilder(),
)

# ── Handler singletons ─────────────────────────────────────────────────────────

_search_h   = SearchHandler(_repo, settings)
_suggest_h  = SuggestHandler(_repo, registry, settings)
_places_h   = PlacesHandler(_repo)
_category_h = CategoryHandler(_repo)
_review_h   = ReviewHandler(_repo, _review_ai)


# ── Getters (used by routes) ───────────────────────────────────────────────────

def get_repository()       -> ShopRepository:    return _repo
def get_registry()         -> BehaviourRegistry: return registry
def get_search_handler()   -> SearchHandler:     return _search_h
def get_suggest_handler()  -> SuggestHandler:    return _suggest_h
def get_places_handler()   -> PlacesHandler:     return _places_h
def get_category_handler() -> CategoryHandler:   return _category_h
def get_review_handler()   -> ReviewHandler:     return _review_h
