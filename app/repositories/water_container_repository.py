from app import db
from app.models import WaterContainer

WATER_CONTAINER_FIELDS = ("name", "volume", "unit", "servings_per_container")


def _container_to_payload(container: WaterContainer) -> dict:
    return {
        "id": container.id,
        "user_id": container.user_id,
        "name": container.name,
        "volume": container.volume,
        "unit": container.unit,
        "servings_per_container": container.servings_per_container,
        "is_primary": container.is_primary,
    }


def get_water_container_by_id(container_id: int) -> dict | None:
    container = db.session.get(WaterContainer, container_id)
    return _container_to_payload(container) if container else None


def get_water_containers(user_id: int) -> list[dict]:
    containers = WaterContainer.query.filter_by(user_id=user_id).order_by(WaterContainer.name.asc()).all()
    return [_container_to_payload(container) for container in containers]


def get_primary_water_container(user_id: int) -> dict | None:
    container = WaterContainer.query.filter_by(user_id=user_id, is_primary=True).first()
    return _container_to_payload(container) if container else None


def create_water_container(container_data: dict) -> dict:
    container = WaterContainer(user_id=container_data["user_id"])
    for field in WATER_CONTAINER_FIELDS:
        if container_data.get(field) is not None:
            setattr(container, field, container_data[field])
    db.session.add(container)
    db.session.commit()
    return _container_to_payload(container)


def get_water_container_owner_id(container_id: int) -> int | None:
    return db.session.query(WaterContainer.user_id).filter(WaterContainer.id == container_id).scalar()


def update_water_container(container_id: int, user_id: int, update_data: dict) -> dict | None:
    container = WaterContainer.query.filter_by(id=container_id, user_id=user_id).first()
    if container is None:
        return None
    for field in WATER_CONTAINER_FIELDS:
        if update_data.get(field) is not None:
            setattr(container, field, update_data[field])
    db.session.add(container)
    db.session.commit()
    return _container_to_payload(container)


def delete_water_container(container_id: int, user_id: int) -> bool:
    deleted = WaterContainer.query.filter_by(id=container_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0


def set_primary_water_container(container_id: int, user_id: int) -> dict | None:
    container = WaterContainer.query.filter_by(id=container_id, user_id=user_id).first()
    if container is None:
        return None
    WaterContainer.query.filter(
        WaterContainer.user_id == user_id,
        WaterContainer.id != container_id,
    ).update({WaterContainer.is_primary: False}, synchronize_session=False)
    container.is_primary = True
    db.session.add(container)
    db.session.commit()
    return _container_to_payload(container)
