import json
import logging

from django.conf import settings
from django.contrib.auth.models import User
from django.db import IntegrityError
from django.http import JsonResponse, HttpResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from tmbackend.api import exporter, importer
from tmbackend.api.auth import find_user_by_email, issue_token, jwt_required, user_payload
from tmbackend.api.forms import RegisterForm, TaskForm, form_errors
from tmbackend.api.middleware import server_error_response
from tmbackend.api.models import Task
from tmbackend.api.store import TaskStore

logger = logging.getLogger(__name__)

SERVICE_NAME = 'taskmanagement-backend-django'

NOT_FOUND = {"message": "Task not found"}


def _json_body(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@require_http_methods(["GET"])
def health(request):
    return JsonResponse({
        "status": "OK",
        "message": "Task Management API is running",
        "service": SERVICE_NAME,
        "timestamp": timezone.now().isoformat(),
    })


def not_found(request, exception=None):
    return JsonResponse({"message": "Route not found"}, status=404)


def server_error(request):
    return server_error_response("Internal server error")


@csrf_exempt
@require_http_methods(["POST"])
def register(request):
    form = RegisterForm(_json_body(request))
    if not form.is_valid():
        return JsonResponse({"errors": form_errors(form)}, status=400)
    username = form.cleaned_data['username']
    email = form.cleaned_data['email']
    if User.objects.filter(username=username).exists() or find_user_by_email(email):
        return JsonResponse({"message": "User already exists"}, status=409)
    try:
        user = User.objects.create_user(username=username, email=email, password=form.cleaned_data['password'])
    except IntegrityError:
        return JsonResponse({"message": "User already exists"}, status=409)
    logger.info("Registered user id=%s username=%s", user.id, username)
    return JsonResponse({
        "message": "User registered successfully",
        "token": issue_token(user),
        "user": user_payload(user),
    }, status=201)


@csrf_exempt
@require_http_methods(["POST"])
def login_view(request):
    body = _json_body(request)
    email = str(body.get('email') or '').strip()
    password = body.get('password') or ''
    user = find_user_by_email(email) if email else None
    if user is None or not user.is_active or not user.check_password(password):
        logger.info("Failed login for email=%s", email)
        return JsonResponse({"message": "Invalid credentials"}, status=401)
    return JsonResponse({
        "message": "Login successful",
        "token": issue_token(user),
        "user": user_payload(user),
    })


@require_http_methods(["GET"])
@jwt_required
def me(request):
    return JsonResponse({"user": user_payload(request.user)})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@jwt_required
def tasks(request):
    store = TaskStore(request.user)
    if request.method == 'GET':
        status = request.GET.get('status') or None
        if status == 'all':
            status = None
        items = store.list(status=status, search=request.GET.get('search') or None)
        return JsonResponse([t.to_dict() for t in items], safe=False)
    form = TaskForm(_json_body(request))
    if not form.is_valid():
        return JsonResponse({"errors": form_errors(form)}, status=400)
    data = form.cleaned_data
    task = store.create(
        title=data['title'],
        description=data['description'],
        effort_days=data['effort_days'],
        due_date=data['due_date'],
    )
    return JsonResponse({"message": "Task created successfully", "task": task.to_dict()}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@jwt_required
def task_detail(request, task_id: int):
    store = TaskStore(request.user)
    try:
        if request.method == 'GET':
            return JsonResponse(store.get(task_id).to_dict())
        if request.method == 'DELETE':
            store.delete(task_id)
            return JsonResponse({"message": "Task deleted successfully"})
        form = TaskForm(_json_body(request))
        if not form.is_valid():
            return JsonResponse({"errors": form_errors(form)}, status=400)
        task = store.update(task_id, **form.cleaned_data)
    except Task.DoesNotExist:
        return JsonResponse(NOT_FOUND, status=404)
    return JsonResponse({"message": "Task updated successfully", "task": task.to_dict()})


@require_http_methods(["GET"])
@jwt_required
def export_excel(request):
    try:
        content = exporter.render_tasks_xlsx(TaskStore(request.user).list())
    except Exception as exc:
        logger.exception("Error exporting tasks for user=%s", request.user.id)
        return server_error_response("Error exporting tasks", exc)
    response = HttpResponse(content, content_type=exporter.XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{exporter.export_filename()}"'
    return response


@csrf_exempt
@require_http_methods(["POST"])
@jwt_required
def bulk_upload(request):
    upload = request.FILES.get('file')
    if upload is None:
        return JsonResponse({"message": "No file uploaded"}, status=400)
    if upload.size > settings.BULK_UPLOAD_MAX_BYTES:
        return JsonResponse({"message": "File too large"}, status=400)
    try:
        result = importer.import_upload(upload, TaskStore(request.user), settings.UPLOAD_DIR)
    except importer.UnsupportedFileType as exc:
        logger.info("Rejected upload %r with content type %r", upload.name, exc.content_type)
        return JsonResponse({"message": str(exc)}, status=400)
    except Exception as exc:
        logger.exception("Error processing bulk upload for user=%s", request.user.id)
        return server_error_response("Error processing bulk upload", exc)
    finally:
        upload.close()

    if result.parsed == 0:
        return JsonResponse({"message": "No valid tasks found in the file", "errors": result.errors}, status=400)
    body = {
        "message": f"Successfully imported {len(result.imported)} tasks",
        "imported": len(result.imported),
    }
    if result.errors:
        body["errors"] = result.errors
    return JsonResponse(body)
