"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility.
Every value interpolated here must already be HTML-escaped by the caller.
"""

from typing import Optional

from .config import FRONTEND_URL

# Brand colors - Blue/Slate color scheme
THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#dc2626",
}

BRAND_NAME = "Registro Nacional de Bicis"
LOGO_URL = f"{FRONTEND_URL}/logo-rnb.png"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_user_email: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_user_email:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          Recibes este correo porque tienes una cuenta en {BRAND_NAME}.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image
              src="{LOGO_URL}"
              alt="{BRAND_NAME}"
              width="140px"
              href="{FRONTEND_URL}"
              padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="#94a3b8" padding="0">
              <a href="{FRONTEND_URL}/privacy" style="color: #64748b; text-decoration: none;">Aviso de Privacidad</a>
              <span style="color: #cbd5e1; margin: 0 8px;">•</span>
              <a href="{FRONTEND_URL}/terms" style="color: #64748b; text-decoration: none;">Términos y Condiciones</a>
            </mj-text>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="12px 0 0 0">
              © {BRAND_NAME}. Todos los derechos reservados.
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    """Label/value lines inside a tinted box"""
    lines = "".join(
        f'<p style="margin: 6px 0;"><strong>{label}:</strong> {value}</p>' for label, value in rows
    )
    return f"""
    <mj-text background-color="{THEME['background']}" padding="16px 20px" css-class="details">
      {lines}
    </mj-text>
    """


def welcome_email_template(user_name: str) -> str:
    content = f"""
    <mj-text>
      Hola {user_name},
    </mj-text>

    <mj-text>
      Tu cuenta ha sido creada. Ahora puedes registrar tus bicicletas, generar su
      certificado con código QR y reportarlas en caso de robo.
    </mj-text>

    <mj-text>
      Para comenzar, elige un plan y registra tu primera bicicleta.
    </mj-text>
    """

    return get_base_template(
        title=f"¡Bienvenido a {BRAND_NAME}!",
        preview_text="Tu cuenta ha sido creada",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/subscription",
        cta_label="Elegir un plan",
        is_user_email=True,
    )


def password_reset_template(user_name: str, reset_link: str) -> str:
    """Password reset MJML template (link valid for one hour)"""
    content = f"""
    <mj-text>
      Hola {user_name},
    </mj-text>

    <mj-text>
      Recibimos una solicitud para restablecer la contraseña de tu cuenta. Haz clic en
      el botón para crear una nueva contraseña.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Este enlace expira en 1 hora. Si no solicitaste este cambio, puedes ignorar este correo.
    </mj-text>
    """

    return get_base_template(
        title="Restablecer contraseña",
        preview_text="Restablece tu contraseña",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Restablecer contraseña",
        is_user_email=True,
    )


def contact_message_template(name: str, email: str, subject: str, message: str, sent_at: str) -> str:
    """Contact form message forwarded to the support inbox"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 16px 0">
      Nuevo mensaje recibido desde el formulario de contacto.
    </mj-text>

    {_detail_rows([("Nombre", name), ("Email", email), ("Asunto", subject), ("Fecha", sent_at)])}

    <mj-text padding="16px 0 0 0" font-weight="600" color="{THEME['primary_dark']}">
      Mensaje:
    </mj-text>
    <mj-text>
      <div style="white-space: pre-wrap;">{message}</div>
    </mj-text>
    """

    return get_base_template(
        title="📧 Nuevo Mensaje de Contacto",
        preview_text=f"Mensaje de {name}: {subject}",
        content_sections=content,
    )


def subscription_activated_template(
    user_name: str, plan_name: str, bicycle_limit: int, period_end: Optional[str]
) -> str:
    rows = [("Plan", plan_name), ("Bicicletas permitidas", str(bicycle_limit))]
    if period_end:
        rows.append(("Próxima renovación", period_end))

    content = f"""
    <mj-text>
      Hola {user_name},
    </mj-text>

    <mj-text>
      Tu suscripción está activa. Ya puedes registrar tus bicicletas.
    </mj-text>

    {_detail_rows(rows)}
    """

    return get_base_template(
        title="Suscripción activada",
        preview_text=f"Tu plan {plan_name} está activo",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bicycles/register",
        cta_label="Registrar bicicleta",
        is_user_email=True,
    )


def subscription_canceled_template(user_name: str, cancel_date: Optional[str]) -> str:
    if cancel_date:
        detail = f"Tu plan seguirá activo hasta el {cancel_date}. Después de esa fecha no se realizarán más cobros."
    else:
        detail = "Tu suscripción fue cancelada de inmediato. No se realizarán más cobros."

    content = f"""
    <mj-text>
      Hola {user_name},
    </mj-text>

    <mj-text>
      {detail}
    </mj-text>

    <mj-text>
      Tus bicicletas registradas conservan su historial. Puedes volver a suscribirte cuando quieras.
    </mj-text>
    """

    return get_base_template(
        title="Suscripción cancelada",
        preview_text="Confirmación de cancelación",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/subscription",
        cta_label="Ver planes",
        is_user_email=True,
    )


def theft_report_confirmation_template(
    user_name: str,
    bicycle_label: str,
    serial_number: str,
    location: str,
    report_date: str,
    verify_url: str,
) -> str:
    """Sent to the owner once a bicycle is flagged as stolen"""
    content = f"""
    <mj-text>
      Hola {user_name},
    </mj-text>

    <mj-text>
      Registramos el reporte de robo de tu bicicleta. A partir de ahora, cualquier persona
      que verifique su número de serie o escanee su código QR verá que fue reportada como robada.
    </mj-text>

    {_detail_rows([
        ("Bicicleta", bicycle_label),
        ("Número de serie", serial_number),
        ("Lugar", location),
        ("Fecha del reporte", report_date),
    ])}

    <mj-text color="{THEME['danger']}" font-size="14px">
      Te recomendamos presentar también la denuncia ante el Ministerio Público.
    </mj-text>
    """

    return get_base_template(
        title="🚨 Reporte de robo registrado",
        preview_text=f"Reporte de robo de {bicycle_label}",
        content_sections=content,
        cta_url=verify_url,
        cta_label="Ver página de verificación",
        is_user_email=True,
    )
