from datetime import date, datetime, timezone

from app import db


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    checkins = db.relationship("CheckInMeasurement", backref="user", lazy=True)
    water_intakes = db.relationship("WaterIntake", backref="user", lazy=True)
    water_containers = db.relationship("WaterContainer", backref="user", lazy=True)
    custom_categories = db.relationship("CustomCategory", backref="user", lazy=True)
    meals = db.relationship("Meal", backref="user", lazy=True)
    exercise_entries = db.relationship("ExerciseEntry", backref="user", lazy=True)
    coach_chat_messages = db.relationship("CoachChatMessage", backref="user", lazy=True)


class CheckInMeasurement(db.Model):
    __tablename__ = "check_in_measurements"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    entry_date = db.Column(db.Date, default=date.today, index=True, nullable=False)

    weight = db.Column(db.Float, nullable=True)
    neck = db.Column(db.Float, nullable=True)
    waist = db.Column(db.Float, nullable=True)
    hips = db.Column(db.Float, nullable=True)
    steps = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "entry_date", name="uq_check_in_measurements_user_date"),
    )


class WaterContainer(db.Model):
    __tablename__ = "water_containers"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    volume = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(12), nullable=False, default="ml")  # ml | l | oz | cup
    servings_per_container = db.Column(db.Integer, nullable=False, default=1)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class WaterIntake(db.Model):
    __tablename__ = "water_intake"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    entry_date = db.Column(db.Date, index=True, nullable=False)
    water_ml = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (db.UniqueConstraint("user_id", "entry_date", name="uq_water_intake_user_date"),)


class CustomCategory(db.Model):
    __tablename__ = "custom_categories"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    measurement_type = db.Column(db.String(40), nullable=False, default="numeric")
    frequency = db.Column(db.String(20), nullable=False, default="Daily")  # Daily | Hourly | All | Unlimited
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    measurements = db.relationship(
        "CustomMeasurement",
        backref="category",
        lazy=True,
        cascade="all, delete-orphan",
    )

    __table_args__ = (db.UniqueConstraint("user_id", "name", name="uq_custom_categories_user_name"),)


class CustomMeasurement(db.Model):
    __tablename__ = "custom_measurements"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("custom_categories.id"), nullable=False, index=True)
    value = db.Column(db.Float, nullable=False)
    entry_date = db.Column(db.Date, index=True, nullable=False)
    entry_hour = db.Column(db.Integer, nullable=True)  # 0-23
    entry_timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class Exercise(db.Model):
    __tablename__ = "exercises"

    id = db.Column(db.Integer, primary_key=True)
    # NULL owner means the exercise is shared by every user.
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    name = db.Column(db.String(120), index=True, nullable=False)
    category = db.Column(db.String(40), nullable=False, default="general")
    calories_per_hour = db.Column(db.Float, nullable=True)
    is_custom = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class ExerciseEntry(db.Model):
    __tablename__ = "exercise_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    exercise_id = db.Column(db.Integer, db.ForeignKey("exercises.id"), nullable=False, index=True)
    entry_date = db.Column(db.Date, index=True, nullable=False)
    duration_minutes = db.Column(db.Float, nullable=False, default=0)
    calories_burned = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    exercise = db.relationship("Exercise", backref="entries", lazy=True)


class Meal(db.Model):
    __tablename__ = "meals"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    eaten_at = db.Column(db.DateTime, index=True, nullable=False)
    meal_type = db.Column(db.String(20), nullable=False, default="snacks")  # breakfast/lunch/dinner/snacks
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(32), nullable=True)

    calories = db.Column(db.Integer, nullable=True)
    protein_g = db.Column(db.Float, nullable=True)
    carbs_g = db.Column(db.Float, nullable=True)
    fat_g = db.Column(db.Float, nullable=True)
    sugar_g = db.Column(db.Float, nullable=True)
    sodium_mg = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class CoachChatMessage(db.Model):
    __tablename__ = "coach_chat_messages"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)  # user | assistant
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)


class AIServiceSetting(db.Model):
    __tablename__ = "ai_service_settings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    service_name = db.Column(db.String(40), nullable=False, default="openai")
    model_name = db.Column(db.String(80), nullable=True)
    encrypted_api_key = db.Column(db.LargeBinary, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
