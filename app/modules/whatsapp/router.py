# app/modules/whatsapp/router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, ROLES_ADMIN, ROLES_TODOS
from .service import WhatsAppService
from .schemas import (
    TemplateCreateRequest, TemplateUpdateRequest, TemplateResponse,
    GeneratedMessageResponse, PlaceholderInfo
)

router = APIRouter()


@router.get("/health")
async def whatsapp_health():
    """Health check del módulo de WhatsApp"""
    return {
        "service": "whatsapp",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Plantillas por estado y recordatorios",
            "Reemplazo de placeholders con datos de la orden",
            "Enlaces wa.me listos para enviar"
        ]
    }


@router.get("/placeholders", response_model=List[PlaceholderInfo])
async def get_placeholders(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Placeholders disponibles para escribir plantillas"""
    service = WhatsAppService(db)
    return await service.get_placeholders()


# ==================== PLANTILLAS ====================

@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Plantillas activas"""
    service = WhatsAppService(db)
    return await service.list_templates()


@router.get("/templates/all", response_model=List[TemplateResponse])
async def list_all_templates(
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Todas las plantillas, incluidas las inactivas"""
    service = WhatsAppService(db)
    return await service.list_templates(include_inactive=True)


@router.get("/templates/reminders", response_model=List[TemplateResponse])
async def get_reminder_templates(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = WhatsAppService(db)
    return await service.get_reminders()


@router.get("/templates/state/{estado_reparacion_id}", response_model=List[TemplateResponse])
async def get_templates_for_state(
    estado_reparacion_id: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Plantillas de un estado, la predeterminada primero"""
    service = WhatsAppService(db)
    return await service.get_templates_for_state(estado_reparacion_id)


@router.get("/templates/state/{estado_reparacion_id}/default", response_model=TemplateResponse)
async def get_default_template_for_state(
    estado_reparacion_id: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = WhatsAppService(db)
    return await service.get_default_for_state(estado_reparacion_id)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = WhatsAppService(db)
    return await service.get_template(template_id)


@router.post("/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    request: TemplateCreateRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Crear una plantilla

    Si se marca como predeterminada, deja de serlo cualquier otra del mismo
    estado y tipo.
    """
    service = WhatsAppService(db)
    return await service.create_template(request, current_user.user_id)


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    request: TemplateUpdateRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    service = WhatsAppService(db)
    return await service.update_template(template_id, request, current_user.user_id)


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    service = WhatsAppService(db)
    return await service.delete_template(template_id, current_user.user_id)


# ==================== MENSAJES ====================

@router.post("/templates/{template_id}/generate/{numero}", response_model=GeneratedMessageResponse)
async def generate_message(
    template_id: int,
    numero: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Armar el mensaje de una plantilla con los datos de la orden"""
    service = WhatsAppService(db)
    return await service.generate_message(template_id, numero)


@router.post("/generate/{numero}", response_model=GeneratedMessageResponse)
async def generate_default_message(
    numero: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Armar el mensaje con la plantilla predeterminada del estado actual de la orden"""
    service = WhatsAppService(db)
    return await service.generate_default_message(numero)
