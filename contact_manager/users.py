"""Account pages of the logged-in user."""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from .security import get_current_user
from .web import View, get_view

router = APIRouter(
    prefix="/user",
    tags=["users"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/dashboard", response_class=HTMLResponse)
def user_dashboard(view: View = Depends(get_view)):
    return view("user/dashboard.html")


@router.get("/profile", response_class=HTMLResponse)
def user_profile(view: View = Depends(get_view)):
    """Profile page; the user itself comes from the view's ``logged_in_user``."""
    return view("user/profile.html")
