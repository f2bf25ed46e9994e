import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Study",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("study_instance_uid", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                (
                    "modality",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("CR", "Computed Radiography"),
                            ("MR", "Magnetic Resonance"),
                            ("CT", "Computed Tomography"),
                            ("NM", "Nuclear Medicine"),
                            ("US", "Ultrasound"),
                            ("XA", "X-Ray Angiography"),
                        ],
                        max_length=8,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("STAT", "Stat"),
                            ("HIGH", "High"),
                            ("ROUTINE", "Routine"),
                            ("MEDIUM", "Medium"),
                            ("LOW", "Low"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "scheduled_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("SCHEDULED", "Scheduled"),
                            ("ARRIVED", "Arrived"),
                            ("READY", "Ready"),
                            ("STARTED", "Started"),
                            ("DEPARTED", "Departed"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "performed_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("IN_PROGRESS", "In progress"),
                            ("DISCONTINUED", "Discontinued"),
                            ("COMPLETED", "Completed"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "mwl_status",
                    models.CharField(
                        choices=[
                            ("default", "Not sent"),
                            ("save_ok", "Saved"),
                            ("save_err", "Save failed"),
                            ("update_ok", "Updated"),
                            ("update_err", "Update failed"),
                            ("void_ok", "Voided"),
                            ("void_err", "Void failed"),
                            ("unvoid_ok", "Unvoided"),
                            ("unvoid_err", "Unvoid failed"),
                            ("discontinue_ok", "Discontinued"),
                            ("discontinue_err", "Discontinue failed"),
                            ("undiscontinue_ok", "Undiscontinued"),
                            ("undiscontinue_err", "Undiscontinue failed"),
                        ],
                        default="default",
                        max_length=24,
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="study",
                        to="orders.order",
                    ),
                ),
                (
                    "scheduler",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scheduled_studies",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "performing_physician",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="performed_studies",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reading_physician",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="read_studies",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "radiology_study",
                "indexes": [models.Index(fields=["mwl_status"], name="radiology_mwl_status_idx")],
            },
        ),
    ]
