import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

ORDER_STATUS_CHOICES = [
    ('NEW', 'New'),
    ('AWAITING_ALLOC', 'Awaiting Allocation'),
    ('DISPATCHED', 'Dispatched'),
    ('PICKED_UP', 'Picked Up'),
    ('DELIVERING', 'Delivering'),
    ('DELIVERED', 'Delivered'),
    ('RETURNED', 'Returned'),
    ('CANCELED', 'Canceled'),
    ('ON_HOLD', 'On Hold'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('products', '0001_initial'),
        ('users', '0001_initial'),
        ('warehouse', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('tracking_code', models.CharField(
                    editable=False, help_text='Short public order reference (auto-generated)',
                    max_length=12, unique=True)),
                ('customer_name', models.CharField(max_length=200)),
                ('customer_email', models.EmailField(blank=True, max_length=254)),
                ('customer_phone', models.CharField(blank=True, max_length=30)),
                ('delivery_address', models.TextField(blank=True)),
                ('status', models.CharField(
                    choices=ORDER_STATUS_CHOICES, default='NEW',
                    help_text='Current order status in the fulfillment workflow', max_length=20)),
                ('held_from_status', models.CharField(
                    blank=True, choices=ORDER_STATUS_CHOICES,
                    help_text='Status to return to when an ON_HOLD order is released', max_length=20)),
                ('total_amount', models.DecimalField(
                    decimal_places=2, default=Decimal('0.00'), help_text='Total order amount', max_digits=12)),
                ('stock_committed_at', models.DateTimeField(
                    blank=True, help_text='When picked quantities were decremented from the stock ledger',
                    null=True)),
                ('notes', models.TextField(blank=True)),
                ('order_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_logistics', models.ForeignKey(
                    blank=True, help_text='Logistics user currently responsible for the order', null=True,
                    on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_orders',
                    to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(
                    help_text='User who created the order', null=True,
                    on_delete=django.db.models.deletion.SET_NULL, related_name='created_orders',
                    to=settings.AUTH_USER_MODEL)),
                ('fulfillment_warehouse', models.ForeignKey(
                    blank=True, help_text='Warehouse the order is allocated against', null=True,
                    on_delete=django.db.models.deletion.SET_NULL, related_name='orders',
                    to='warehouse.warehouse')),
                ('merchant', models.ForeignKey(
                    help_text='Merchant business that owns the order',
                    on_delete=django.db.models.deletion.PROTECT, related_name='orders',
                    to='users.business')),
            ],
            options={
                'ordering': ['-order_date'],
                'indexes': [
                    models.Index(fields=['merchant', 'status'], name='order_merchant_status_idx'),
                    models.Index(fields=['assigned_logistics', 'status'], name='order_logistics_status_idx'),
                    models.Index(fields=['order_date'], name='order_date_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('status__in', [value for value, _ in ORDER_STATUS_CHOICES])),
                        name='order_status_in_closed_set'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(
                    help_text='Units ordered', validators=[django.core.validators.MinValueValidator(1)])),
                ('unit_price', models.DecimalField(
                    decimal_places=2, default=Decimal('0.00'), help_text='Price per unit at time of order',
                    max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(
                    help_text='Order this item belongs to', on_delete=django.db.models.deletion.CASCADE,
                    related_name='items', to='order_fulfillment.order')),
                ('product', models.ForeignKey(
                    help_text='Ordered product', on_delete=django.db.models.deletion.PROTECT,
                    related_name='order_items', to='products.product')),
            ],
            options={
                'ordering': ['created_at'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('quantity__gte', 1)), name='order_item_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('tracking_number', models.CharField(
                    blank=True, help_text='Carrier tracking number', max_length=100)),
                ('carrier_name', models.CharField(
                    blank=True, help_text='Carrier handling the delivery', max_length=100)),
                ('delivery_attempts', models.PositiveIntegerField(
                    default=0, help_text='Number of failed delivery attempts')),
                ('last_status_update', models.DateTimeField(
                    default=django.utils.timezone.now,
                    help_text='Touched by every status-changing operation on the order')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.OneToOneField(
                    help_text='Order this shipment belongs to', on_delete=django.db.models.deletion.CASCADE,
                    related_name='shipment', to='order_fulfillment.order')),
            ],
            options={
                'ordering': ['-last_status_update'],
                'indexes': [
                    models.Index(fields=['tracking_number'], name='shipment_tracking_number_idx'),
                    models.Index(fields=['last_status_update'], name='shipment_last_update_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('entity_type', models.CharField(
                    help_text='Type of entity (Order, Shipment, LogisticsRegion, etc.)', max_length=50)),
                ('entity_id', models.CharField(
                    help_text='Identifier of the entity being audited', max_length=64)),
                ('action', models.CharField(
                    help_text='Action performed (STATUS_CHANGED, LOGISTICS_ASSIGNED, etc.)', max_length=50)),
                ('details', models.JSONField(
                    blank=True, default=dict, help_text='Before/after state or other context')),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('actor', models.ForeignKey(
                    help_text='User who performed the action', null=True,
                    on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['entity_type', 'entity_id', '-timestamp'], name='audit_entity_ts_idx'),
                    models.Index(fields=['action', '-timestamp'], name='audit_action_ts_idx'),
                    models.Index(fields=['actor', '-timestamp'], name='audit_actor_ts_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('notification_type', models.CharField(
                    choices=[('INFO', 'Info'), ('SUCCESS', 'Success'), ('WARNING', 'Warning'), ('ERROR', 'Error')],
                    default='INFO', max_length=10)),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('link_url', models.CharField(blank=True, max_length=500)),
                ('template_kind', models.CharField(blank=True, max_length=50)),
                ('template_data', models.JSONField(blank=True, default=dict)),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('recipient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='notifications',
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
                    models.Index(fields=['template_kind'], name='notif_template_kind_idx'),
                ],
            },
        ),
    ]
