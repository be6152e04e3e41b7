from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Tender",
            fields=[
                ("id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("unit_id", models.CharField(max_length=100)),
                ("job_number", models.CharField(max_length=100)),
                ("title", models.CharField(max_length=500)),
                ("type", models.CharField(blank=True, max_length=100)),
                ("category", models.CharField(blank=True, max_length=100)),
                ("unit_name", models.CharField(blank=True, max_length=255)),
                (
                    "date",
                    models.BigIntegerField(
                        default=0, help_text="YYYYMMDD of the latest observation, 0 when unknown"
                    ),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-date", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="TenderVersion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField()),
                ("date", models.BigIntegerField(default=0)),
                ("type", models.CharField(blank=True, max_length=100)),
                ("data", models.JSONField(default=dict)),
                ("fingerprint", models.CharField(db_index=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tender",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="versions",
                        to="tenders.tender",
                    ),
                ),
            ],
            options={
                "ordering": ["tender", "-version"],
            },
        ),
        migrations.CreateModel(
            name="TenderView",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_archived", models.BooleanField(default=False)),
                ("is_highlighted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tender",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="views",
                        to="tenders.tender",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tender_views",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-tender__date", "-created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="tender",
            constraint=models.UniqueConstraint(fields=("unit_id", "job_number"), name="unique_tender_identity"),
        ),
        migrations.AddConstraint(
            model_name="tenderversion",
            constraint=models.UniqueConstraint(fields=("tender", "version"), name="unique_tender_version"),
        ),
        migrations.AddConstraint(
            model_name="tenderview",
            constraint=models.UniqueConstraint(fields=("user", "tender"), name="unique_tender_view_per_user"),
        ),
    ]
