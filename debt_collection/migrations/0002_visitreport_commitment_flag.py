from django.db import migrations, models
from django.db.models import Q


def flag_existing_commitments(apps, schema_editor):
    VisitReport = apps.get_model("debt_collection", "VisitReport")
    VisitReport.objects.filter(
        Q(commitment_date__isnull=False) | Q(notes__contains="Komitmen:")
    ).update(has_commitment=True)


class Migration(migrations.Migration):

    dependencies = [
        ("debt_collection", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="visitreport",
            name="has_commitment",
            field=models.BooleanField(
                default=False,
                help_text="Debtor promised to pay; approval moves the asset to JANJI_BAYAR",
            ),
        ),
        migrations.AddField(
            model_name="visitreport",
            name="commitment_text",
            field=models.CharField(
                blank=True, help_text="Text typed after the Komitmen: marker", max_length=100
            ),
        ),
        migrations.RunPython(flag_existing_commitments, migrations.RunPython.noop),
    ]
