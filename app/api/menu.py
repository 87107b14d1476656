"""Menu API endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from app.core.dependencies import get_menu_repository
from app.services.menu.base import Menu, MenuItem
from app.services.menu.repository import MenuRepository


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/menu", response_model=Menu)
async def get_menu(
    request: Request,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the full menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        menu = await menu_repository.get_menu()
    except Exception as e:
        logger.error(
            f"[MENU] Error fetching menu - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Error fetching menu")

    logger.info(f"[MENU] Menu loaded - {len(menu.items)} items, {len(menu.addons)} add-ons")
    return menu


@router.get("/api/menu/text", response_class=PlainTextResponse)
async def get_menu_text(menu_repository: MenuRepository = Depends(get_menu_repository)):
    """Menu as plain text, for the chat client to put in the cashier prompt."""
    return await menu_repository.get_menu_text()


@router.get("/api/menu/items/{item_name}", response_model=MenuItem)
async def get_menu_item(
    item_name: str,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get a single menu item by name (case-insensitive)."""
    item = await menu_repository.get_item_by_name(item_name)
    if not item:
        raise HTTPException(status_code=404, detail=f"'{item_name}' is not on the menu")
    return item
