from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SupportOption:
    key: str
    prompt: str
    field: str
    label: str
    field_label: str


SUPPORT_OPTIONS = {
    "1": SupportOption(
        key="1",
        prompt="❌ *No abre el sistema*\n¿Aparece algún mensaje de error? (si/no o describe el mensaje)",
        field="error_message",
        label="❌ No abre el sistema",
        field_label="Mensaje",
    ),
    "2": SupportOption(
        key="2",
        prompt="🔑 *Licencia desactivada*\nPor favor envíame tu *número de licencia* o *correo registrado*.",
        field="license_info",
        label="🔑 Licencia desactivada",
        field_label="Datos",
    ),
    "3": SupportOption(
        key="3",
        prompt="🌐 *Problema con el portal web*\nEscribe el mensaje que aparece o envía una captura.",
        field="portal_message",
        label="🌐 Error portal web",
        field_label="Mensaje",
    ),
    "4": SupportOption(
        key="4",
        prompt="💲 *Solicitud de cotización*\nIndica qué producto o servicio deseas cotizar.",
        field="quote_request",
        label="💲 Cotización solicitada",
        field_label="Detalle",
    ),
    "5": SupportOption(
        key="5",
        prompt="📝 *Otro problema*\nDescríbeme brevemente la situación.",
        field="other_issue",
        label="📝 Otro problema",
        field_label="Descripción",
    ),
}


def get_option(key: Optional[str]) -> Optional[SupportOption]:
    if key is None:
        return None
    return SUPPORT_OPTIONS.get(key.strip())
