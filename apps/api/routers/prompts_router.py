import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shared.config.settings import settings
from shared.errors import ConcurrentUpdateError, NotFoundError, StoreError, ValidationError
from shared.storage.list_store import ListStore
from apps.api.services.prompt_repository import PromptRepository

logger = logging.getLogger(__name__)

router = APIRouter()

STORE_UNAVAILABLE = "Storage service unavailable"


def get_list_store(request: Request) -> ListStore:
    """Store handle owned by the application lifespan"""
    return request.app.state.list_store


def get_repository(store: ListStore = Depends(get_list_store)) -> PromptRepository:
    return PromptRepository(
        store,
        max_prompts=settings.max_prompts,
        max_retries=settings.comment_max_retries
    )


async def read_json_object(request: Request) -> dict:
    raw_body = await request.body()
    try:
        data = json.loads(raw_body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(["Invalid JSON body"])
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object"])
    return data


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("")
async def list_prompts(repository: PromptRepository = Depends(get_repository)):
    """All prompts, newest first"""
    try:
        prompts = await repository.list_all()
    except StoreError:
        return error_response(500, STORE_UNAVAILABLE)
    return [prompt.to_dict() for prompt in prompts]


@router.get("/{prompt_id}")
async def get_prompt(prompt_id: str, repository: PromptRepository = Depends(get_repository)):
    try:
        prompt = await repository.get(prompt_id)
    except NotFoundError:
        return error_response(404, "Prompt not found")
    except StoreError:
        return error_response(500, STORE_UNAVAILABLE)
    return prompt.to_dict()


@router.post("")
async def create_prompt(request: Request, repository: PromptRepository = Depends(get_repository)):
    """Submit a new prompt listing"""
    try:
        data = await read_json_object(request)
        prompt = await repository.create(data)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"errors": e.errors})
    except StoreError:
        return error_response(500, STORE_UNAVAILABLE)

    return JSONResponse(
        status_code=201,
        content={
            "success": True,
            "prompt": prompt.to_dict(),
            "message": "Prompt added successfully"
        }
    )


@router.post("/{prompt_id}/comments")
async def add_comment(prompt_id: str, request: Request,
                      repository: PromptRepository = Depends(get_repository)):
    """Add a rated comment and return the updated prompt"""
    try:
        data = await read_json_object(request)
        prompt = await repository.add_comment(prompt_id, data)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"errors": e.errors})
    except NotFoundError:
        return error_response(404, "Prompt not found")
    except ConcurrentUpdateError:
        return error_response(409, "Prompt was modified concurrently, please retry")
    except StoreError:
        return error_response(500, STORE_UNAVAILABLE)

    return JSONResponse(status_code=201, content={"success": True, "prompt": prompt.to_dict()})
