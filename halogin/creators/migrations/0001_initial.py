import django.db.models.deletion
import pgvector.django
from django.conf import settings
from django.db import migrations
from django.db import models
from pgvector.django import VectorExtension


def create_hnsw_index(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(
        "CREATE INDEX IF NOT EXISTS creators_creatorprofile_embedding_hnsw "
        "ON creators_creatorprofile USING hnsw (embedding vector_ip_ops)"
    )


def drop_hnsw_index(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(
        "DROP INDEX IF EXISTS creators_creatorprofile_embedding_hnsw"
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        VectorExtension(),
        migrations.CreateModel(
            name="CreatorProfile",
            fields=[
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="creator_profile",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("given_name", models.CharField(max_length=255)),
                ("family_name", models.CharField(max_length=255)),
                ("pronouns", models.CharField(max_length=64)),
                ("profile_desc", models.TextField()),
                ("content_desc", models.TextField()),
                ("audience_desc", models.TextField()),
                (
                    "pfp_path",
                    models.CharField(blank=True, default="", max_length=500),
                ),
                (
                    "embedding",
                    pgvector.django.VectorField(
                        blank=True, dimensions=1536, null=True
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.RunPython(create_hnsw_index, drop_hnsw_index),
    ]
