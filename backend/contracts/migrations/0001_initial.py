import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('shops', '0001_initial'),
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Contract',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(blank=True, max_length=200)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField(blank=True, null=True)),
                ('rent_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('currency', models.CharField(choices=[('EUR', 'EUR'), ('USD', 'USD'), ('XAF', 'XAF'), ('MAD', 'MAD')], default='EUR', max_length=3)),
                ('deposit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('charges', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('payment_day', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(28)])),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('terminated', 'Terminated'), ('expired', 'Expired')], default='active', max_length=20)),
                ('auto_renewal', models.BooleanField(default=False)),
                ('contract_type', models.CharField(choices=[('commercial', 'Commercial'), ('residential', 'Residential'), ('other', 'Other')], default='commercial', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts', to=settings.AUTH_USER_MODEL)),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='contracts', to='shops.shop')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='contracts', to='parties.tenant')),
            ],
            options={
                'db_table': 'contracts',
                'ordering': ['-start_date', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_contract_status'),
                    models.Index(fields=['end_date'], name='idx_contract_end_date'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'active')), fields=('shop',), name='unique_active_contract_per_shop'),
                ],
            },
        ),
    ]
