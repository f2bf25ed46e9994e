import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("patients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("instructions", models.TextField(blank=True)),
                ("start_date", models.DateTimeField(blank=True, null=True)),
                ("auto_expire_date", models.DateTimeField(blank=True, null=True)),
                ("voided", models.BooleanField(default=False)),
                ("void_reason", models.CharField(blank=True, max_length=255)),
                ("date_voided", models.DateTimeField(blank=True, null=True)),
                ("discontinued", models.BooleanField(default=False)),
                ("discontinued_reason", models.CharField(blank=True, max_length=255)),
                ("discontinued_date", models.DateTimeField(blank=True, null=True)),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="patients.patient",
                    ),
                ),
                (
                    "orderer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="placed_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "voided_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="voided_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "discontinued_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="discontinued_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "orders_order",
                "indexes": [models.Index(fields=["patient", "voided"], name="orders_patient_voided_idx")],
            },
        ),
    ]
