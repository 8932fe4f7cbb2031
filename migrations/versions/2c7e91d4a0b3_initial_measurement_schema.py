"""initial measurement schema

Revision ID: 2c7e91d4a0b3
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "2c7e91d4a0b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "check_in_measurements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("neck", sa.Float(), nullable=True),
        sa.Column("waist", sa.Float(), nullable=True),
        sa.Column("hips", sa.Float(), nullable=True),
        sa.Column("steps", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "entry_date", name="uq_check_in_measurements_user_date"),
    )
    with op.batch_alter_table("check_in_measurements", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_check_in_measurements_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_check_in_measurements_entry_date"), ["entry_date"], unique=False)

    op.create_table(
        "water_containers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("volume", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=12), nullable=False),
        sa.Column("servings_per_container", sa.Integer(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("water_containers", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_water_containers_user_id"), ["user_id"], unique=False)

    op.create_table(
        "water_intake",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("water_ml", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "entry_date", name="uq_water_intake_user_date"),
    )
    with op.batch_alter_table("water_intake", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_water_intake_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_water_intake_entry_date"), ["entry_date"], unique=False)

    op.create_table(
        "custom_categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("measurement_type", sa.String(length=40), nullable=False),
        sa.Column("frequency", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_custom_categories_user_name"),
    )
    with op.batch_alter_table("custom_categories", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_custom_categories_user_id"), ["user_id"], unique=False)

    op.create_table(
        "custom_measurements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("entry_hour", sa.Integer(), nullable=True),
        sa.Column("entry_timestamp", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.ForeignKeyConstraint(["category_id"], ["custom_categories.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("custom_measurements", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_custom_measurements_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_custom_measurements_category_id"), ["category_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_custom_measurements_entry_date"), ["entry_date"], unique=False)
        batch_op.create_index(batch_op.f("ix_custom_measurements_entry_timestamp"), ["entry_timestamp"], unique=False)

    op.create_table(
        "exercises",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("category", sa.String(length=40), nullable=False),
        sa.Column("calories_per_hour", sa.Float(), nullable=True),
        sa.Column("is_custom", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("exercises", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_exercises_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_exercises_name"), ["name"], unique=False)

    op.create_table(
        "exercise_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("exercise_id", sa.Integer(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("duration_minutes", sa.Float(), nullable=False),
        sa.Column("calories_burned", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.ForeignKeyConstraint(["exercise_id"], ["exercises.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("exercise_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_exercise_entries_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_exercise_entries_exercise_id"), ["exercise_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_exercise_entries_entry_date"), ["entry_date"], unique=False)

    op.create_table(
        "meals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("eaten_at", sa.DateTime(), nullable=False),
        sa.Column("meal_type", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=32), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("protein_g", sa.Float(), nullable=True),
        sa.Column("carbs_g", sa.Float(), nullable=True),
        sa.Column("fat_g", sa.Float(), nullable=True),
        sa.Column("sugar_g", sa.Float(), nullable=True),
        sa.Column("sodium_mg", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("meals", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_meals_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_meals_eaten_at"), ["eaten_at"], unique=False)

    op.create_table(
        "coach_chat_messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("coach_chat_messages", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_coach_chat_messages_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_coach_chat_messages_created_at"), ["created_at"], unique=False)

    op.create_table(
        "ai_service_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("service_name", sa.String(length=40), nullable=False),
        sa.Column("model_name", sa.String(length=80), nullable=True),
        sa.Column("encrypted_api_key", sa.LargeBinary(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("ai_service_settings", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_ai_service_settings_user_id"), ["user_id"], unique=False)


def downgrade():
    with op.batch_alter_table("ai_service_settings", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_ai_service_settings_user_id"))
    op.drop_table("ai_service_settings")

    with op.batch_alter_table("coach_chat_messages", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_coach_chat_messages_created_at"))
        batch_op.drop_index(batch_op.f("ix_coach_chat_messages_user_id"))
    op.drop_table("coach_chat_messages")

    with op.batch_alter_table("meals", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_meals_eaten_at"))
        batch_op.drop_index(batch_op.f("ix_meals_user_id"))
    op.drop_table("meals")

    with op.batch_alter_table("exercise_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_exercise_entries_entry_date"))
        batch_op.drop_index(batch_op.f("ix_exercise_entries_exercise_id"))
        batch_op.drop_index(batch_op.f("ix_exercise_entries_user_id"))
    op.drop_table("exercise_entries")

    with op.batch_alter_table("exercises", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_exercises_name"))
        batch_op.drop_index(batch_op.f("ix_exercises_user_id"))
    op.drop_table("exercises")

    with op.batch_alter_table("custom_measurements", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_custom_measurements_entry_timestamp"))
        batch_op.drop_index(batch_op.f("ix_custom_measurements_entry_date"))
        batch_op.drop_index(batch_op.f("ix_custom_measurements_category_id"))
        batch_op.drop_index(batch_op.f("ix_custom_measurements_user_id"))
    op.drop_table("custom_measurements")

    with op.batch_alter_table("custom_categories", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_custom_categories_user_id"))
    op.drop_table("custom_categories")

    with op.batch_alter_table("water_intake", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_water_intake_entry_date"))
        batch_op.drop_index(batch_op.f("ix_water_intake_user_id"))
    op.drop_table("water_intake")

    with op.batch_alter_table("water_containers", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_water_containers_user_id"))
    op.drop_table("water_containers")

    with op.batch_alter_table("check_in_measurements", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_check_in_measurements_entry_date"))
        batch_op.drop_index(batch_op.f("ix_check_in_measurements_user_id"))
    op.drop_table("check_in_measurements")

    op.drop_table("users")
