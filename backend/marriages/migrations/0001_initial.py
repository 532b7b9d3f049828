import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cases', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Marriage',
            fields=[
                ('case_ptr', models.OneToOneField(auto_created=True, on_delete=django.db.models.deletion.CASCADE, parent_link=True, primary_key=True, serialize=False, to='cases.case')),
                ('marriage_type', models.CharField(choices=[('reservation', 'Reservation'), ('certificate', 'Certificate')], db_index=True, max_length=15, verbose_name='Service Type')),
                ('preferred_date', models.DateField(blank=True, null=True, verbose_name='Preferred Date')),
                ('preferred_time', models.TimeField(blank=True, null=True, verbose_name='Preferred Time')),
                ('preferred_location', models.CharField(blank=True, default='', max_length=255, verbose_name='Preferred Location')),
                ('register_as_australian', models.BooleanField(default=False, verbose_name='Register as Australian Marriage')),
                ('marriage_date', models.DateField(blank=True, null=True, verbose_name='Marriage Date')),
                ('marriage_place', models.CharField(blank=True, default='', max_length=255, verbose_name='Marriage Place')),
                ('certificate_generated', models.BooleanField(default=False, verbose_name='Certificate Generated')),
                ('certificate_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Certificate Number')),
                ('certificate_issued_date', models.DateTimeField(blank=True, null=True, verbose_name='Certificate Issued Date')),
                ('certificate_file', models.CharField(blank=True, default='', max_length=512, verbose_name='Certificate Storage Key')),
                ('certificate_file_url', models.CharField(blank=True, default='', max_length=1024, verbose_name='Certificate URL')),
                ('additional_information', models.TextField(blank=True, default='', verbose_name='Additional Information')),
                ('preferred_shaykh', models.ForeignKey(blank=True, help_text='A preference only; assignment is done by an admin.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='preferred_for_marriages', to=settings.AUTH_USER_MODEL, verbose_name='Preferred Shaykh')),
            ],
            options={
                'verbose_name': 'Marriage',
                'verbose_name_plural': 'Marriages',
                'ordering': ['-created_at'],
            },
            bases=('cases.case',),
        ),
        migrations.CreateModel(
            name='MarriageWitness',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('contact', models.CharField(blank=True, default='', max_length=255, verbose_name='Contact')),
                ('marriage', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='witnesses', to='marriages.marriage', verbose_name='Marriage')),
            ],
            options={
                'verbose_name': 'Marriage Witness',
                'verbose_name_plural': 'Marriage Witnesses',
                'ordering': ['id'],
            },
        ),
    ]
