# Standard Library
import logging

# Django
from django.db import transaction

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

# Local Imports
from .models import HEALING_STATUSES, QUESTION_STATUSES, HealingForm, QuestionForm
from .permissions import IsAdminRole
from .serializers import (
    HealingFormSerializer, HealingStatusSerializer, QuestionAnswerSerializer, QuestionFormSerializer,
)
from .utilities import _iso, _parse_payload, api_response, page_params, pagination_meta

logger = logging.getLogger(__name__)


def _submitter(request):
    user = request.user
    return user if user and user.is_authenticated else None


def _user_summary(user):
    if user is None:
        return None
    return {"id": user.pk, "name": user.name, "email": user.email}


def _serialize_healing(f):
    return {
        "id": f.pk,
        "name": f.name,
        "seekingFor": f.seeking_for,
        "description": f.description,
        "photo": f.photo or None,
        "email": f.email or None,
        "phone": f.phone or None,
        "status": f.status,
        "adminNotes": f.admin_notes,
        "isConfidential": f.is_confidential,
        "user": _user_summary(f.user),
        "createdAt": _iso(f.created_at),
        "updatedAt": _iso(f.updated_at),
    }


def _serialize_question(q):
    return {
        "id": q.pk,
        "name": q.name,
        "email": q.email or None,
        "category": q.category,
        "question": q.question,
        "status": q.status,
        "adminResponse": q.admin_response or None,
        "isPublic": q.is_public,
        "isApproved": q.is_approved,
        "user": _user_summary(q.user),
        "createdAt": _iso(q.created_at),
        "updatedAt": _iso(q.updated_at),
    }


def _status_filter(request, allowed):
    value = (request.query_params.get("status") or "").strip()
    if value and value not in allowed:
        raise ValidationError(f"Invalid status: {value}")
    return value


# --------------------------
# Public submissions
# --------------------------

class SubmitHealingFormAPIView(APIView):
    """POST /api/forms/healing  { name, seekingFor, description, photo?, email?, phone? }"""
    permission_classes = [AllowAny]

    def post(self, request):
        ser = HealingFormSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        with transaction.atomic():
            form = HealingForm.objects.create(
                user=_submitter(request),
                name=data["name"].strip(),
                seeking_for=data["seekingFor"].strip(),
                description=data["description"].strip(),
                photo=data["photo"].strip(),
                email=data["email"].strip().lower(),
                phone=data["phone"].strip(),
            )

        logger.info("Healing form %s submitted by %s", form.pk, form.email or form.name)
        return api_response({"id": form.pk, "status": form.status},
                            message="Healing form submitted successfully",
                            status_code=status.HTTP_201_CREATED)


class SubmitQuestionAPIView(APIView):
    """POST /api/forms/questions  { name, email?, category, question }"""
    permission_classes = [AllowAny]

    def post(self, request):
        ser = QuestionFormSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        with transaction.atomic():
            question = QuestionForm.objects.create(
                user=_submitter(request),
                name=data["name"].strip(),
                email=data["email"].strip().lower(),
                category=data["category"].strip(),
                question=data["question"].strip(),
            )

        logger.info("Question %s submitted in category %s", question.pk, question.category)
        return api_response({"id": question.pk, "status": question.status},
                            message="Question submitted successfully",
                            status_code=status.HTTP_201_CREATED)


# --------------------------
# Admin review
# --------------------------

class AdminHealingFormsAPIView(APIView):
    """GET /api/admin/healing-forms?status&page&limit  (newest first)"""
    permission_classes = [IsAdminRole]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=20, max_limit=100)
        qs = HealingForm.objects.select_related("user")
        status_filter = _status_filter(request, HEALING_STATUSES)
        if status_filter:
            qs = qs.filter(status=status_filter)

        total = qs.count()
        forms = [_serialize_healing(f) for f in qs[offset:offset + limit]]
        return api_response({"forms": forms, "pagination": pagination_meta(page, limit, total)})


class AdminQuestionsAPIView(APIView):
    """GET /api/admin/questions?status&page&limit  (newest first)"""
    permission_classes = [IsAdminRole]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=20, max_limit=100)
        qs = QuestionForm.objects.select_related("user")
        status_filter = _status_filter(request, QUESTION_STATUSES)
        if status_filter:
            qs = qs.filter(status=status_filter)

        total = qs.count()
        questions = [_serialize_question(q) for q in qs[offset:offset + limit]]
        return api_response({"questions": questions, "pagination": pagination_meta(page, limit, total)})


class AdminHealingFormStatusAPIView(APIView):
    """PUT /api/admin/healing-forms/<form_id>/status  { status, adminNotes? }"""
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def put(self, request, form_id):
        ser = HealingStatusSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)

        form = HealingForm.objects.select_for_update().filter(pk=form_id).first()
        if not form:
            raise NotFound("Healing form not found")

        form.status = ser.validated_data["status"]
        if "adminNotes" in ser.validated_data:
            form.admin_notes = ser.validated_data["adminNotes"].strip()
        form.save(update_fields=["status", "admin_notes", "updated_at"])

        logger.info("Healing form %s set to %s by %s", form.pk, form.status, request.user.email)
        return api_response(_serialize_healing(form), message="Form status updated successfully")


class AdminAnswerQuestionAPIView(APIView):
    """PUT /api/admin/questions/<question_id>/answer  { adminResponse, status?, isPublic? }"""
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def put(self, request, question_id):
        ser = QuestionAnswerSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        question = QuestionForm.objects.select_for_update().filter(pk=question_id).first()
        if not question:
            raise NotFound("Question not found")

        question.admin_response = data["adminResponse"].strip()
        question.status = data["status"]
        question.is_public = data["isPublic"]
        question.is_approved = data["isPublic"]
        question.save()

        logger.info("Question %s answered by %s (public=%s)", question.pk, request.user.email, question.is_public)
        return api_response(_serialize_question(question), message="Question answered successfully")
