import logging
from datetime import datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_encode, urlsafe_base64_decode

from .filters import UserFilter, ActivityLogFilter
from .models import User, ActivityLog, Notification
from .permissions import IsAdminRole, can_manage
from .scheduled_tasks import run_scheduled_tasks
from .serializers import (
    UserSerializer, UserCreateSerializer, UserRoleSerializer,
    PasswordResetRequestSerializer, PasswordResetConfirmSerializer,
    ActivityLogSerializer, NotificationSerializer
)
from .utils import log_activity, paginated_response

logger = logging.getLogger('backend.core')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        log_activity(
            request=self.context.get('request'),
            actor=self.user,
            action='login',
            entity='user',
            entity_id=self.user.id,
            entity_label=self.user.email,
        )
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['full_name'] = user.display_name
        token['role'] = user.effective_role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


def user_payload(user):
    """Profile plus the permission flags the console uses to show pages"""
    data = UserSerializer(user).data
    role = user.effective_role
    data['effective_role'] = role
    data['is_admin'] = role == User.ROLE_ADMIN
    data['is_manager'] = role == User.ROLE_MANAGER
    data['is_accountant'] = role == User.ROLE_ACCOUNTANT
    data['can_manage'] = can_manage(user)
    data['can_access_users'] = data['is_admin']
    data['can_access_activity'] = data['is_admin']
    return data


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint; new accounts have no role until an admin grants one"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        log_activity(request=request, actor=user, action='create', entity='user',
                     entity_id=user.id, entity_label=user.email, details={'source': 'signup'})
        logger.info(f"User {user.email} registered")
        return Response({
            'user': user_payload(user),
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Blacklist the refresh token of the current session"""
    refresh = request.data.get('refresh')
    if not refresh:
        return Response({'error': 'Refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        RefreshToken(refresh).blacklist()
    except TokenError as e:
        logger.warning(f"Logout with invalid refresh token by {request.user.username}: {e}")
        return Response({'error': 'Token is invalid or expired.'}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(request=request, action='logout', entity='user',
                 entity_id=request.user.id, entity_label=request.user.email)
    return Response({'message': 'Logged out'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role and permission flags"""
    return Response(user_payload(request.user))


@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_request(request):
    """Send a password reset link; always answers 200 so accounts cannot be probed"""
    serializer = PasswordResetRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    email = serializer.validated_data['email'].strip().lower()
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?uid={uid}&token={token}"
        try:
            send_mail(
                subject='Reset your password',
                message=f"Hello {user.display_name},\n\nUse the link below to choose a new password:\n{link}\n\n"
                        f"If you did not ask for a reset, ignore this e-mail.",
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
            )
            logger.info(f"Password reset e-mail sent to {user.email}")
        except Exception as e:
            logger.error(f"Failed to send password reset e-mail to {user.email}: {str(e)}", exc_info=True)
    else:
        logger.info(f"Password reset requested for unknown or inactive e-mail {email}")

    return Response({'message': 'If an account exists for this e-mail, a reset link has been sent.'})


@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_confirm(request):
    """Set a new password from a reset link"""
    serializer = PasswordResetConfirmSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(data['uid'])))
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        user = None

    if user is None or not default_token_generator.check_token(user, data['token']):
        return Response({'error': 'Reset link is invalid or has expired'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        validate_password(data['password'], user)
    except DjangoValidationError as e:
        return Response({'password': list(e.messages)}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(data['password'])
    user.save(update_fields=['password', 'updated_at'])
    log_activity(request=request, actor=user, action='update', entity='user',
                 entity_id=user.id, entity_label=user.email, details={'password_reset': True})
    return Response({'message': 'Password updated'})


# User management views (admin only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    """List users with search and status filters"""
    user_filter = UserFilter(request.query_params, queryset=User.objects.order_by('-created_at'))
    if not user_filter.is_valid():
        return Response(user_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(UserSerializer(user_filter.qs, many=True).data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve a user or update their name and phone"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    serializer = UserSerializer(user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        log_activity(request=request, action='update', entity='user', entity_id=user.id,
                     entity_label=user.email, details={'fields': sorted(request.data.keys())})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_role_update(request, pk):
    """Grant, change or remove a user's role"""
    user = get_object_or_404(User, pk=pk)
    serializer = UserRoleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_role = serializer.validated_data['role'] or None
    if user.pk == request.user.pk and new_role != User.ROLE_ADMIN:
        logger.warning(f"Admin {request.user.username} attempted to remove their own admin role")
        return Response({'error': 'You cannot remove your own admin role'}, status=status.HTTP_400_BAD_REQUEST)

    old_role = user.role
    user.role = new_role
    user.save(update_fields=['role', 'updated_at'])
    log_activity(
        request=request,
        action='role_change',
        entity='user',
        entity_id=user.id,
        entity_label=user.email,
        details={'role': {'old': old_role, 'new': new_role}},
    )
    logger.info(f"User {user.email} role {old_role} -> {new_role} by {request.user.username}")
    return Response(UserSerializer(user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_toggle_active(request, pk):
    """Activate or deactivate an account"""
    user = get_object_or_404(User, pk=pk)
    if user.pk == request.user.pk and user.is_active:
        return Response({'error': 'You cannot deactivate your own account'}, status=status.HTTP_400_BAD_REQUEST)

    user.is_active = not user.is_active
    user.save(update_fields=['is_active', 'updated_at'])
    log_activity(
        request=request,
        action='activate' if user.is_active else 'deactivate',
        entity='user',
        entity_id=user.id,
        entity_label=user.email,
    )
    logger.info(f"User {user.email} {'activated' if user.is_active else 'deactivated'} by {request.user.username}")
    return Response(UserSerializer(user).data)


# Activity log views (read-only, admin only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_list(request):
    """List the most recent activity with search and filters"""
    queryset = ActivityLog.objects.select_related('actor').order_by('-created_at', '-id')
    log_filter = ActivityLogFilter(request.query_params, queryset=queryset)
    if not log_filter.is_valid():
        return Response(log_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    queryset = log_filter.qs[:settings.ACTIVITY_LOG_LIMIT]
    return paginated_response(request, queryset, ActivityLogSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_entities(request):
    """Distinct entity types present in the activity log"""
    entities = ActivityLog.objects.order_by('entity').values_list('entity', flat=True).distinct()
    return Response(list(entities))


# Notification views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Current user's notifications, newest first"""
    queryset = Notification.objects.filter(user=request.user).order_by('-created_at', '-id')
    if request.query_params.get('unread') == 'true':
        queryset = queryset.filter(read=False)
    return Response({
        'results': NotificationSerializer(queryset[:50], many=True).data,
        'unread_count': Notification.objects.filter(user=request.user, read=False).count(),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return Response(NotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
    return Response({'updated': updated})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_delete(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    notification.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def run_tasks(request):
    """Run the daily scheduled tasks now"""
    today = None
    raw_date = request.data.get('date')
    if raw_date:
        try:
            today = datetime.strptime(str(raw_date), '%Y-%m-%d').date()
        except ValueError:
            return Response({'error': 'Invalid date, expected YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    force_invoices = str(request.data.get('force_invoices', '')).lower() in ('1', 'true', 'yes')
    try:
        summary = run_scheduled_tasks(today=today, force_invoices=force_invoices, request=request)
    except Exception as e:
        logger.error(f"Error running scheduled tasks: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(summary)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Global search across shops, tenants, contracts and invoices"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'shops': [],
            'tenants': [],
            'contracts': [],
            'invoices': [],
        })

    from backend.shops.models import Shop
    from backend.parties.models import Tenant
    from backend.contracts.models import Contract
    from backend.billing.models import Invoice
    from backend.shops.serializers import ShopOptionSerializer
    from backend.parties.serializers import TenantOptionSerializer

    results = {}

    shops = Shop.objects.filter(
        Q(shop_number__icontains=query) |
        Q(name__icontains=query) |
        Q(location__icontains=query)
    )[:20]
    results['shops'] = ShopOptionSerializer(shops, many=True).data

    tenants = Tenant.objects.filter(
        Q(company_name__icontains=query) |
        Q(contact_name__icontains=query) |
        Q(email__icontains=query) |
        Q(phone__icontains=query)
    )[:20]
    results['tenants'] = TenantOptionSerializer(tenants, many=True).data

    contracts = Contract.objects.select_related('tenant', 'shop').filter(
        Q(title__icontains=query) |
        Q(tenant__company_name__icontains=query) |
        Q(shop__shop_number__icontains=query)
    )[:20]
    results['contracts'] = [
        {'id': c.id, 'label': c.label, 'status': c.status, 'end_date': c.end_date}
        for c in contracts
    ]

    invoices = Invoice.objects.select_related('tenant').filter(
        Q(invoice_number__icontains=query) |
        Q(tenant__company_name__icontains=query)
    )[:20]
    results['invoices'] = [
        {
            'id': i.id,
            'invoice_number': i.invoice_number,
            'tenant': i.tenant.company_name,
            'amount_total': str(i.amount_total),
            'currency': i.currency,
            'status': i.status,
        }
        for i in invoices
    ]

    return Response(results)
