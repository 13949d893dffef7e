import logging

from django.contrib.auth import update_session_auth_hash
from rest_framework import permissions, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from .identity import current_identity
from .models import Asset, PaymentReport, UserProfile, VisitReport
from .serializers import (
    AssetSerializer,
    PaymentReportSerializer,
    ProfileSerializer,
    UserSerializer,
    VisitReportSerializer,
)
from .services.assets import branch_for, import_assets
from .services.assignments import bulk_assign
from .services.dashboard import collector_dashboard, validation_summary
from .services.errors import WorkflowError
from .services.reports import (
    get_report,
    list_reports,
    require_payload,
    submit_payment_report,
    submit_visit_report,
)
from .services.users import change_password, get_profile, list_users, update_profile
from .services.validation import decide_report

logger = logging.getLogger(__name__)


def _ok(data, status=200, **extra):
    return Response({"success": True, "data": data, **extra}, status=status)


def _fail(exc: WorkflowError):
    return Response({"success": False, "error": exc.message}, status=exc.status_code)


#
# Permissions
#
class IsValidatorOrReadOnly(permissions.BasePermission):
    """Reads for any signed-in user, writes for ADMIN/MANAGER, deletes for ADMIN."""

    def has_permission(self, request, view):
        identity = current_identity(request)
        if identity is None:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        if request.method == "DELETE":
            return identity.role == UserProfile.ADMIN
        return identity.can_validate


#
# Field reports
#
REPORT_KINDS = {
    "visit": (VisitReport, VisitReportSerializer, submit_visit_report),
    "payment": (PaymentReport, PaymentReportSerializer, submit_payment_report),
}


def _report_collection(request, kind):
    model, serializer_class, submit = REPORT_KINDS[kind]
    identity = current_identity(request)
    try:
        if request.method == "POST":
            report = submit(identity, request.data)
            return _ok(serializer_class(report).data, status=201)
        qs = list_reports(identity, model, request.query_params.get("status"))
    except WorkflowError as exc:
        return _fail(exc)
    data = serializer_class(qs, many=True).data
    return _ok(data, count=len(data))


def _report_detail(request, kind, pk):
    model, serializer_class, _ = REPORT_KINDS[kind]
    identity = current_identity(request)
    try:
        if request.method == "PATCH":
            data = require_payload(request.data)
            report = decide_report(
                model,
                pk,
                data.get("status"),
                identity,
                rejection_reason=data.get("rejectionReason"),
            )
        else:
            report = get_report(identity, model, pk)
    except WorkflowError as exc:
        return _fail(exc)
    return _ok(serializer_class(report).data)


@api_view(["GET", "POST"])
def visit_reports(request):
    return _report_collection(request, "visit")


@api_view(["GET", "PATCH"])
def visit_report_detail(request, pk):
    return _report_detail(request, "visit", pk)


@api_view(["GET", "POST"])
def payment_reports(request):
    return _report_collection(request, "payment")


@api_view(["GET", "PATCH"])
def payment_report_detail(request, pk):
    return _report_detail(request, "payment", pk)


#
# Dashboards
#
@api_view(["GET"])
def collector_dashboard_view(request):
    try:
        data = collector_dashboard(current_identity(request))
    except WorkflowError as exc:
        return _fail(exc)
    return _ok(data)


@api_view(["GET"])
def management_dashboard_view(request):
    try:
        data = validation_summary(current_identity(request))
    except WorkflowError as exc:
        return _fail(exc)
    return _ok(data)


#
# Assets
#
class AssetViewSet(viewsets.ModelViewSet):
    serializer_class = AssetSerializer
    permission_classes = [permissions.IsAuthenticated, IsValidatorOrReadOnly]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):
        qs = Asset.objects.select_related("branch", "collector")
        identity = current_identity(self.request)
        if identity is not None and identity.is_collector:
            # Collectors only ever see their own portfolio
            return qs.filter(collector_id=identity.id)
        params = self.request.query_params
        collector_id = params.get("collectorId")
        if collector_id:
            if not collector_id.isdigit():
                return qs.none()
            qs = qs.filter(collector_id=collector_id)
        if params.get("unassigned") == "true":
            qs = qs.filter(collector__isnull=True)
        return qs

    def perform_create(self, serializer):
        data = serializer.validated_data
        asset = serializer.save(
            branch=branch_for(data.get("branch_name"), data.get("region"))
        )
        logger.info("Asset %s created by user %s", asset.account_number, self.request.user.pk)

    def perform_update(self, serializer):
        data = serializer.validated_data
        extra = {}
        if "branch_name" in data:
            extra["branch"] = branch_for(
                data["branch_name"], data.get("region", serializer.instance.region)
            )
        serializer.save(**extra)

    def perform_destroy(self, instance):
        logger.info("Asset %s deleted by user %s", instance.account_number, self.request.user.pk)
        instance.delete()

    @action(detail=False, methods=["post"], url_path="assign")
    def assign(self, request):
        try:
            data = require_payload(request.data)
            result = bulk_assign(
                current_identity(request),
                data.get("assetIds"),
                data.get("collectorId"),
                due_date=data.get("dueDate") or None,
            )
        except WorkflowError as exc:
            return _fail(exc)
        return _ok(result)

    @action(detail=False, methods=["post"], url_path="import")
    def import_rows(self, request):
        try:
            data = require_payload(request.data)
            result = import_assets(current_identity(request), data.get("assets"))
        except WorkflowError as exc:
            return _fail(exc)
        return _ok(result)


#
# Users
#
class UserViewSet(viewsets.ViewSet):
    def list(self, request):
        try:
            users = list_users(current_identity(request), request.query_params.get("role"))
        except WorkflowError as exc:
            return _fail(exc)
        data = UserSerializer(users, many=True).data
        return _ok(data, count=len(data))

    @action(detail=True, methods=["get", "put"], url_path="profile")
    def profile(self, request, pk=None):
        identity = current_identity(request)
        try:
            if request.method == "PUT":
                user = update_profile(identity, pk, require_payload(request.data))
            else:
                user = get_profile(identity, pk)
        except WorkflowError as exc:
            return _fail(exc)
        return _ok(ProfileSerializer(user).data)

    @action(detail=True, methods=["put"], url_path="password")
    def password(self, request, pk=None):
        try:
            user = change_password(
                current_identity(request), pk, require_payload(request.data)
            )
        except WorkflowError as exc:
            return _fail(exc)
        # Keep the caller signed in on session auth
        update_session_auth_hash(request, user)
        return _ok({"id": user.pk})
