from app.errors import NotFoundError, ValidationError
from app.repositories import water_container_repository
from app.services.common import parse_float, parse_int, require_owner

SUPPORTED_UNITS = {"ml", "l", "oz", "cup"}


def _container_fields(container_data: dict, *, partial: bool) -> dict:
    fields = {}

    name = (container_data.get("name") or "").strip()
    if name:
        fields["name"] = name[:120]
    elif not partial:
        raise ValidationError("Container name is required.")

    if "volume" in container_data or not partial:
        volume = parse_float(container_data.get("volume"))
        if volume is None or volume <= 0:
            raise ValidationError("Container volume must be a positive number.")
        fields["volume"] = volume

    if "servings_per_container" in container_data or not partial:
        servings = parse_int(container_data.get("servings_per_container", 1))
        if servings is None or servings < 1:
            raise ValidationError("servings_per_container must be a positive integer.")
        fields["servings_per_container"] = servings

    unit = (container_data.get("unit") or "").strip().lower()
    if unit:
        if unit not in SUPPORTED_UNITS:
            raise ValidationError(f"Unsupported unit. Use one of: {', '.join(sorted(SUPPORTED_UNITS))}.")
        fields["unit"] = unit
    return fields


def get_water_containers(authenticated_user_id: int) -> list[dict]:
    return water_container_repository.get_water_containers(authenticated_user_id)


def get_primary_water_container(authenticated_user_id: int) -> dict | None:
    return water_container_repository.get_primary_water_container(authenticated_user_id)


def create_water_container(authenticated_user_id: int, container_data: dict) -> dict:
    fields = _container_fields(container_data, partial=False)
    fields["user_id"] = authenticated_user_id
    return water_container_repository.create_water_container(fields)


def update_water_container(authenticated_user_id: int, container_id: int, update_data: dict) -> dict:
    owner_id = water_container_repository.get_water_container_owner_id(container_id)
    require_owner(owner_id, authenticated_user_id, entity="Water container", action="update")
    updated = water_container_repository.update_water_container(
        container_id, authenticated_user_id, _container_fields(update_data, partial=True)
    )
    if not updated:
        raise NotFoundError("Water container not found or not authorized to update.")
    return updated


def delete_water_container(authenticated_user_id: int, container_id: int) -> dict:
    owner_id = water_container_repository.get_water_container_owner_id(container_id)
    require_owner(owner_id, authenticated_user_id, entity="Water container", action="delete")
    if not water_container_repository.delete_water_container(container_id, authenticated_user_id):
        raise NotFoundError("Water container not found.")
    return {"message": "Water container deleted successfully."}


def set_primary_water_container(authenticated_user_id: int, container_id: int) -> dict:
    owner_id = water_container_repository.get_water_container_owner_id(container_id)
    require_owner(owner_id, authenticated_user_id, entity="Water container", action="update")
    container = water_container_repository.set_primary_water_container(container_id, authenticated_user_id)
    if not container:
        raise NotFoundError("Water container not found.")
    return container
