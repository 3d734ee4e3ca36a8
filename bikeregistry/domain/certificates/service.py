"""
Registration Certificate Generator
Generates branded PDF certificates and QR codes for registered bicycles
"""

import io
import json
import logging
from datetime import datetime
from typing import Optional

import qrcode
from fastapi import HTTPException
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import Bicycle, User
from ...security_utils import sanitize_filename
from ...utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

SPANISH_MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]  # fmt: skip

NOT_AVAILABLE = "No disponible"
NOT_SPECIFIED = "No especificado"


def format_spanish_date(value: Optional[datetime]) -> str:
    """e.g. 5 de marzo de 2025"""
    if not value:
        return NOT_AVAILABLE
    return f"{value.day} de {SPANISH_MONTHS[value.month - 1]} de {value.year}"


def certificate_number(bicycle: Bicycle) -> str:
    registered = bicycle.registration_date or datetime.utcnow()
    return f"RNB-{registered.year}-{bicycle.id:06d}"


def build_qr_payload(bicycle: Bicycle) -> dict:
    """Data encoded in the bicycle's QR code"""
    return {
        "bicycleId": bicycle.id,
        "serialNumber": bicycle.serial_number,
        "brand": bicycle.brand,
        "model": bicycle.model,
        "ownerName": bicycle.owner.full_name if bicycle.owner else None,
        "registrationDate": (
            bicycle.registration_date.isoformat() if bicycle.registration_date else None
        ),
    }


def generate_qr_png(data: str) -> bytes:
    """Render a QR code as PNG bytes"""
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


class CertificatePDFGenerator:
    """Generate the registration certificate of a bicycle"""

    def __init__(self, bicycle: Bicycle):
        self.bicycle = bicycle
        self.owner: User = bicycle.owner
        self.invoice = bicycle.invoice

        self.page_width, self.page_height = A4
        self.margin = 0.6 * inch
        self.content_width = self.page_width - (2 * self.margin)

        # Brand color (blue)
        self.brand_color = colors.HexColor("#3B82F6")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating certificate for bicycle {self.bicycle.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Certificado RNB - {self.bicycle.brand} {self.bicycle.model}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "CertificateTitle",
            parent=styles["Heading1"],
            fontSize=24,
            textColor=self.brand_color,
            spaceAfter=6,
            alignment=1,  # Center
        )
        subtitle_style = ParagraphStyle(
            "CertificateSubtitle",
            parent=styles["Normal"],
            fontSize=12,
            textColor=self.dark_gray,
            spaceAfter=4,
            alignment=1,
        )
        heading_style = ParagraphStyle(
            "SectionHeading",
            parent=styles["Heading2"],
            fontSize=13,
            textColor=self.brand_color,
            spaceAfter=8,
            spaceBefore=14,
        )
        body_style = ParagraphStyle(
            "CertificateBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=6,
        )

        story = [
            Paragraph("REGISTRO NACIONAL DE BICIS", title_style),
            Paragraph("Certificado de Registro de Bicicleta", subtitle_style),
            Paragraph(f"No. {certificate_number(self.bicycle)}", subtitle_style),
            Spacer(1, 0.25 * inch),
        ]

        story.append(Paragraph("INFORMACIÓN DE LA BICICLETA", heading_style))
        story.append(self._info_table(self._bicycle_rows()))

        story.append(Paragraph("INFORMACIÓN DEL PROPIETARIO", heading_style))
        story.append(self._info_table(self._owner_rows()))

        story.append(Paragraph("DOCUMENTACIÓN DE COMPRA", heading_style))
        story.append(self._info_table(self._invoice_rows()))

        story.append(Paragraph("VERIFICACIÓN Y AUTENTICIDAD", heading_style))
        story.append(self._verification_table())

        story.append(Spacer(1, 0.2 * inch))
        story.append(
            Paragraph(
                "<b>Este certificado confirma que la bicicleta está oficialmente registrada en el "
                "Registro Nacional de Bicis (RNB).</b>",
                body_style,
            )
        )

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        logger.info(f"✅ Certificate generated for bicycle {self.bicycle.id} ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _info_table(
        self, rows: list, label_width: float = 1.8 * inch, width: Optional[float] = None
    ) -> Table:
        label_style = ParagraphStyle("Label", fontName="Helvetica-Bold", fontSize=10)
        value_style = ParagraphStyle("Value", fontName="Helvetica", fontSize=10)
        data = [
            [Paragraph(label, label_style), Paragraph(sanitize_string(str(value)), value_style)]
            for label, value in rows
        ]
        width = width or self.content_width
        table = Table(data, colWidths=[label_width, width - label_width])
        table.setStyle(
            TableStyle(
                [
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BACKGROUND", (0, 0), (0, -1), self.light_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#E5E7EB")),
                ]
            )
        )
        return table

    def _bicycle_rows(self) -> list:
        bicycle = self.bicycle
        rows = [
            ("Número de Serie:", bicycle.serial_number),
            ("Marca:", bicycle.brand),
            ("Modelo:", bicycle.model),
            ("Color:", bicycle.color),
            ("Tipo:", bicycle.bike_type or NOT_SPECIFIED),
            ("Año:", bicycle.year or NOT_SPECIFIED),
        ]
        if bicycle.wheel_size:
            rows.append(("Rodada:", bicycle.wheel_size))
        if bicycle.groupset:
            rows.append(("Grupo:", bicycle.groupset))
        rows.append(("Fecha de Registro:", format_spanish_date(bicycle.registration_date)))
        if bicycle.characteristics:
            rows.append(("Características:", bicycle.characteristics))
        rows.append(
            (
                "Estado:",
                "REPORTADA COMO ROBADA" if bicycle.theft_status == "reported_stolen" else "ACTIVA",
            )
        )
        return rows

    def _owner_rows(self) -> list:
        owner = self.owner
        rows = [
            ("Nombre:", owner.full_name or NOT_AVAILABLE),
            ("Email:", owner.email or NOT_AVAILABLE),
            ("Teléfono:", owner.phone or NOT_AVAILABLE),
        ]
        if owner.curp:
            rows.append(("CURP:", owner.curp))
        if owner.address:
            rows.append(("Dirección:", owner.address))
        return rows

    def _invoice_rows(self) -> list:
        if not self.invoice:
            return [
                ("Estado de Factura:", "SIN FACTURA REGISTRADA"),
                ("", "No se ha registrado factura de compra para esta bicicleta"),
            ]
        return [
            ("Estado de Factura:", "FACTURA REGISTRADA"),
            ("Archivo:", self.invoice.file_name),
            ("Fecha de Registro:", format_spanish_date(self.invoice.created_at)),
        ]

    def _verification_table(self) -> Table:
        """Verification details next to the embedded QR code"""
        rows = [
            ("ID de Registro:", self.bicycle.id),
            ("Fecha de Emisión:", format_spanish_date(datetime.utcnow())),
            ("Verificar en:", f"{FRONTEND_URL}/verify/{self.bicycle.public_id}"),
        ]
        details = self._info_table(
            rows, label_width=1.5 * inch, width=self.content_width - 1.7 * inch
        )

        qr_png = generate_qr_png(json.dumps(build_qr_payload(self.bicycle)))
        qr_image = Image(io.BytesIO(qr_png), width=1.5 * inch, height=1.5 * inch)

        table = Table([[details, qr_image]], colWidths=[self.content_width - 1.7 * inch, 1.7 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("ALIGN", (1, 0), (1, 0), "CENTER"),
                ]
            )
        )
        return table


class CertificateService:
    def __init__(self, db: Session):
        self.db = db

    def get_certified_bicycle(self, bicycle_id: int, user: User) -> Bicycle:
        """Owned bicycle whose registration has been paid"""
        bicycle = (
            self.db.query(Bicycle)
            .filter(
                Bicycle.id == bicycle_id,
                Bicycle.user_id == user.id,
                Bicycle.payment_status.is_(True),
            )
            .first()
        )
        if not bicycle:
            raise HTTPException(
                status_code=404, detail="Bicycle not found or payment not completed"
            )
        return bicycle

    def generate_certificate(self, bicycle_id: int, user: User) -> tuple[bytes, str]:
        """Returns PDF bytes and the download filename"""
        bicycle = self.get_certified_bicycle(bicycle_id, user)
        try:
            pdf_bytes = CertificatePDFGenerator(bicycle).generate()
        except Exception as e:
            logger.error(f"❌ Failed to generate certificate for bicycle {bicycle.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate certificate") from e
        return pdf_bytes, f"certificado-rnb-{sanitize_filename(bicycle.serial_number)}.pdf"

    def get_qr_data(self, bicycle_id: int, user: User) -> dict:
        bicycle = self.get_certified_bicycle(bicycle_id, user)
        return build_qr_payload(bicycle)

    def generate_qr(self, bicycle_id: int, user: User) -> bytes:
        return generate_qr_png(json.dumps(self.get_qr_data(bicycle_id, user)))
