# app/modules/whatsapp/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Optional, Dict, Any

from app.shared.database.models import WhatsAppTemplate, EstadoReparacion


class WhatsAppRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_templates(self, include_inactive: bool = False) -> List[WhatsAppTemplate]:
        query = self.db.query(WhatsAppTemplate)
        if not include_inactive:
            query = query.filter(WhatsAppTemplate.activo == True)
        return query.order_by(WhatsAppTemplate.orden, WhatsAppTemplate.nombre).all()

    def get_template(self, template_id: int) -> Optional[WhatsAppTemplate]:
        return self.db.query(WhatsAppTemplate).filter(
            WhatsAppTemplate.whatsapp_template_id == template_id
        ).first()

    def get_templates_for_state(self, estado_reparacion_id: int) -> List[WhatsAppTemplate]:
        """Plantillas activas del estado, la predeterminada primero"""
        return self.db.query(WhatsAppTemplate).filter(
            and_(
                WhatsAppTemplate.estado_reparacion_id == estado_reparacion_id,
                WhatsAppTemplate.tipo_template == "estado",
                WhatsAppTemplate.activo == True
            )
        ).order_by(
            WhatsAppTemplate.es_default.desc(),
            WhatsAppTemplate.orden,
            WhatsAppTemplate.whatsapp_template_id
        ).all()

    def get_reminders(self) -> List[WhatsAppTemplate]:
        return self.db.query(WhatsAppTemplate).filter(
            and_(
                WhatsAppTemplate.tipo_template == "recordatorio",
                WhatsAppTemplate.activo == True
            )
        ).order_by(WhatsAppTemplate.orden, WhatsAppTemplate.nombre).all()

    def estado_exists(self, estado_reparacion_id: int) -> bool:
        return self.db.query(EstadoReparacion).filter(
            EstadoReparacion.estado_reparacion_id == estado_reparacion_id
        ).first() is not None

    def clear_defaults(self, estado_reparacion_id: Optional[int], tipo_template: str, except_id: Optional[int] = None):
        """Quitar la marca de predeterminada al resto de plantillas del mismo estado y tipo"""
        query = self.db.query(WhatsAppTemplate).filter(
            and_(
                WhatsAppTemplate.tipo_template == tipo_template,
                WhatsAppTemplate.es_default == True
            )
        )
        if estado_reparacion_id is None:
            query = query.filter(WhatsAppTemplate.estado_reparacion_id.is_(None))
        else:
            query = query.filter(WhatsAppTemplate.estado_reparacion_id == estado_reparacion_id)
        if except_id is not None:
            query = query.filter(WhatsAppTemplate.whatsapp_template_id != except_id)

        for template in query.all():
            template.es_default = False

    def create_template(self, data: Dict[str, Any]) -> WhatsAppTemplate:
        template = WhatsAppTemplate(**data)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def save(self, template: WhatsAppTemplate) -> WhatsAppTemplate:
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template: WhatsAppTemplate):
        self.db.delete(template)
        self.db.commit()
