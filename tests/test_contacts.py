import pytest
from fastapi import status

from contact_manager import crud
from contact_manager.exceptions import (
    InvalidQueryError,
    InvalidSortFieldError,
    NotFoundError,
)
from contact_manager.models import Contact
from contact_manager.schemas import ContactForm
from contact_manager.services import ContactService

from conftest import FakeImageService, create_user, login


def contact_form(name="John Doe", email="john@example.com", phone="1234567890"):
    return ContactForm(
        name=name,
        email=email,
        phone_number=phone,
        address="1 Main St",
        description="friend",
        favorite=True,
    )


def seed_contacts(db_session, owner, other):
    service = ContactService(db_session, FakeImageService())
    for name, email in [
        ("Alice", "alice@Example.com"),
        ("bob", "bob@work.com"),
        ("Carol", "carol@example.com"),
        ("Dave", "dave@example.org"),
    ]:
        service.create_from_form(contact_form(name, email), owner.email)
    service.create_from_form(contact_form("Mallory", "mallory@example.com"), other.email)
    return service


def test_search_by_email_is_owner_scoped_and_case_insensitive(db_session):
    owner = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    service = seed_contacts(db_session, owner, other)

    page = service.search("email", "EXAMPLE.COM", owner, 0, 10, "name", "asc")
    assert [c.name for c in page.items] == ["Alice", "Carol"]
    assert page.total_elements == 2
    assert page.total_pages == 1


def test_search_field_is_matched_case_insensitively(db_session):
    owner = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    service = seed_contacts(db_session, owner, other)

    page = service.search("NAME", "a", owner, 0, 10, "name", "desc")
    assert [c.name for c in page.items] == ["Dave", "Carol", "Alice"]

    phone = service.search("phone", "4567", owner, 0, 2, "name", "asc")
    assert phone.total_elements == 4
    assert len(phone.items) == 2
    assert phone.has_next


def test_search_unknown_field_returns_empty_page(db_session):
    owner = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    service = seed_contacts(db_session, owner, other)

    page = service.search("address", "Main", owner, 0, 10, "name", "asc")
    assert page.items == []
    assert page.total_elements == 0


def test_pagination_and_out_of_range_page(db_session):
    owner = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    service = seed_contacts(db_session, owner, other)

    first = service.page_by_owner(owner, 0, 3, "name", "asc")
    assert [c.name for c in first.items] == ["Alice", "Carol", "Dave"]
    assert first.total_pages == 2
    assert first.is_first and not first.is_last

    second = service.page_by_owner(owner, 1, 3, "name", "asc")
    assert [c.name for c in second.items] == ["bob"]
    assert second.is_last and second.has_previous

    beyond = service.page_by_owner(owner, 5, 3, "name", "asc")
    assert beyond.items == []
    assert beyond.total_elements == 4


def test_sort_by_unknown_attribute_fails(db_session):
    owner = create_user(db_session, email="owner@example.com")
    with pytest.raises(InvalidSortFieldError):
        crud.page_contacts_by_user(db_session, owner, 0, 10, "nope", "asc")


def test_search_matches_wildcard_characters_literally(db_session):
    owner = create_user(db_session, email="owner@example.com")
    service = ContactService(db_session, FakeImageService())
    service.create_from_form(contact_form("Alice", "alice@example.com"), owner.email)
    service.create_from_form(contact_form("under_score", "us@example.com"), owner.email)

    underscore = service.search("name", "_", owner, 0, 10, "name", "asc")
    assert [c.name for c in underscore.items] == ["under_score"]

    percent = service.search("name", "%", owner, 0, 10, "name", "asc")
    assert percent.items == []
    assert percent.total_elements == 0


def test_store_rejects_bad_paging_and_search_field(db_session):
    owner = create_user(db_session, email="owner@example.com")
    with pytest.raises(InvalidQueryError):
        crud.page_contacts_by_user(db_session, owner, -1, 10, "name", "asc")
    with pytest.raises(InvalidQueryError):
        crud.page_contacts_by_user(db_session, owner, 0, 0, "name", "asc")
    with pytest.raises(InvalidQueryError):
        crud.search_contacts(db_session, owner, "address", "Main")


def test_create_with_image_records_url_and_public_id(db_session):
    owner = create_user(db_session, email="owner@example.com")
    images = FakeImageService()
    service = ContactService(db_session, images)

    class Upload:
        filename = "face.png"
        file = b"png-bytes"

    contact = service.create_from_form(contact_form(), owner.email, Upload())
    assert contact.user_id == owner.id
    assert contact.cloudinary_image_public_id == images.uploads[0]
    assert contact.picture.endswith(f"{images.uploads[0]}.png")


def test_update_keeps_picture_without_new_image(db_session):
    owner = create_user(db_session, email="owner@example.com")
    service = ContactService(db_session, FakeImageService())
    contact = service.create_from_form(contact_form(), owner.email)
    contact.picture = "https://images.example.com/old.png"
    crud.save_contact(db_session, contact)

    updated = service.apply_form(contact.id, contact_form(name="Johnny"))
    assert updated.name == "Johnny"
    assert updated.picture == "https://images.example.com/old.png"
    assert updated.user_id == owner.id

    form = service.form_for_edit(contact.id)
    assert form.name == "Johnny"
    assert form.picture == "https://images.example.com/old.png"


def test_delete_then_get_is_not_found(db_session):
    owner = create_user(db_session, email="owner@example.com")
    service = ContactService(db_session, FakeImageService())
    contact = service.create_from_form(contact_form(), owner.email)

    with pytest.raises(NotFoundError):
        service.delete("does-not-exist")

    service.delete(contact.id)
    with pytest.raises(NotFoundError):
        service.get_by_id(contact.id)
    assert service.list_by_owner_id(owner.id) == []
    assert service.list_all() == []


def test_add_contact_route(client, db_session, images):
    user = create_user(db_session, email="adder@example.com")
    login(client, user.email)

    form = client.get("/user/contacts/add")
    assert form.status_code == status.HTTP_200_OK

    response = client.post(
        "/user/contacts/add",
        data={
            "name": "Jane",
            "email": "jane@example.com",
            "phoneNumber": "5551234567",
            "address": "2 Side St",
            "favorite": "true",
        },
        files={"contactImage": ("jane.png", b"image-bytes", "image/png")},
        follow_redirects=False,
    )
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/user/contacts/add"

    stored = db_session.query(Contact).filter_by(email="jane@example.com").one()
    assert stored.user_id == user.id
    assert stored.favorite is True
    assert stored.cloudinary_image_public_id == images.uploads[0]


def test_add_contact_route_rejects_invalid_form(client, db_session):
    user = create_user(db_session, email="adder@example.com")
    login(client, user.email)

    response = client.post(
        "/user/contacts/add",
        data={"name": "", "email": "bad", "phoneNumber": "12", "address": ""},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Please correct the following errors" in response.text
    assert "*invalid phone number." in response.text
    assert db_session.query(Contact).count() == 0


def test_list_search_update_delete_routes(client, db_session):
    user = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    seed_contacts(db_session, user, other)
    login(client, user.email)

    listing = client.get("/user/contacts?size=2&sortBy=name&direction=asc")
    assert listing.status_code == status.HTTP_200_OK
    assert "Alice" in listing.text and "Carol" in listing.text
    assert "Mallory" not in listing.text

    search = client.get("/user/contacts/search?field=email&value=work")
    assert search.status_code == status.HTTP_200_OK
    assert "bob" in search.text
    assert "Alice" not in search.text

    assert client.get("/user/contacts?sortBy=nope").status_code == 400

    bob = db_session.query(Contact).filter_by(name="bob").one()
    edit = client.get(f"/user/contacts/view/{bob.id}")
    assert edit.status_code == status.HTTP_200_OK
    assert "bob@work.com" in edit.text

    update = client.post(
        f"/user/contacts/update/{bob.id}",
        data={
            "name": "Robert",
            "email": "robert@work.com",
            "phoneNumber": "1234567890",
            "address": "3 Work Rd",
        },
        follow_redirects=False,
    )
    assert update.status_code == status.HTTP_303_SEE_OTHER
    assert update.headers["location"] == f"/user/contacts/view/{bob.id}"
    db_session.refresh(bob)
    assert bob.name == "Robert"
    assert bob.favorite is False

    delete = client.get(f"/user/contacts/delete/{bob.id}", follow_redirects=False)
    assert delete.headers["location"] == "/user/contacts"
    assert "Contact is Deleted successfully" in client.get("/user/contacts").text

    missing = client.get(f"/user/contacts/delete/{bob.id}")
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_huge_page_index_renders_empty_page(client, db_session):
    user = create_user(db_session, email="owner@example.com")
    other = create_user(db_session, email="other@example.com")
    seed_contacts(db_session, user, other)
    login(client, user.email)

    response = client.get("/user/contacts?page=1000000000000000000")
    assert response.status_code == status.HTTP_200_OK
    assert "No contacts found." in response.text

    search = client.get(
        "/user/contacts/search?field=name&value=a&page=1000000000000000000"
    )
    assert search.status_code == status.HTTP_200_OK
    assert "No contacts found." in search.text


def test_contacts_require_login(client, db_session):
    response = client.get("/user/contacts", follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/login"


def test_api_contact_lookup(client, db_session):
    owner = create_user(db_session, email="owner@example.com")
    contact = ContactService(db_session, FakeImageService()).create_from_form(
        contact_form(), owner.email
    )

    response = client.get(f"/api/contacts/{contact.id}")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["id"] == contact.id
    assert body["email"] == "john@example.com"
    assert "user_id" not in body

    missing = client.get("/api/contacts/unknown")
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["detail"].startswith("Contact not found")
