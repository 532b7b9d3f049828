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
            name='Fatwa',
            fields=[
                ('case_ptr', models.OneToOneField(auto_created=True, on_delete=django.db.models.deletion.CASCADE, parent_link=True, primary_key=True, serialize=False, to='cases.case')),
                ('title', models.CharField(max_length=200, verbose_name='Title')),
                ('question', models.TextField(verbose_name='Question')),
                ('answer', models.TextField(blank=True, default='', verbose_name='Answer')),
                ('answered_at', models.DateTimeField(blank=True, null=True, verbose_name='Answered At')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='Approved At')),
                ('category', models.CharField(default='other', max_length=50, verbose_name='Category')),
                ('urgency', models.CharField(choices=[('urgent', 'Urgent'), ('not-urgent', 'Not Urgent')], default='not-urgent', max_length=15, verbose_name='Urgency')),
                ('privacy', models.CharField(choices=[('confidential', 'Confidential'), ('not-confidential', 'Not Confidential')], default='not-confidential', max_length=20, verbose_name='Privacy')),
                ('answered_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='answered_fatwas', to=settings.AUTH_USER_MODEL, verbose_name='Answered By')),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_fatwas', to=settings.AUTH_USER_MODEL, verbose_name='Approved By')),
            ],
            options={
                'verbose_name': 'Fatwa',
                'verbose_name_plural': 'Fatwas',
                'ordering': ['-created_at'],
            },
            bases=('cases.case',),
        ),
    ]
