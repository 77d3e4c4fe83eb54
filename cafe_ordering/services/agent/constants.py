"""Constants for the ordering conversation."""

# Customer name used until the caller identifies themselves
ANONYMOUS_CUSTOMER = "Cliente Anónimo"

# Fixed extras price table (display name -> unit price). Lookups are case-insensitive.
DEFAULT_EXTRAS = {
    "Leche de almendra": 0.75,
    "Leche de avena": 0.75,
    "Leche de coco": 0.75,
    "Leche deslactosada": 0.50,
    "Shot extra de espresso": 1.00,
    "Crema batida": 0.50,
    "Jarabe de vainilla": 0.60,
    "Jarabe de caramelo": 0.60,
    "Jarabe de avellana": 0.60,
    "Canela": 0.00,
}

# Fixed utterances
GREETING_MESSAGE = "¡Hola! Bienvenido a {cafe_name}. ¿Qué te gustaría ordenar hoy?"
REPEAT_PROMPT_MESSAGE = "No te escuché bien. ¿Podrías repetirlo, por favor?"
ORACLE_APOLOGY_MESSAGE = "Disculpa, tuve un problema para entenderte. ¿Podrías repetir tu pedido, por favor?"
TOTAL_STATEMENT = "El total es de ${total}."
ORDER_REGISTERED_MESSAGE = (
    "Tu orden ha sido registrada con el número {order_id}. ¡Gracias por llamar a {cafe_name}!"
)
SYSTEM_ERROR_MESSAGE = (
    "Lo sentimos, ha ocurrido un error en el sistema. Por favor, inténtelo de nuevo más tarde."
)

# Twilio call statuses that end a call
CALL_ENDED_STATUSES = ["completed", "failed", "busy", "no-answer", "canceled"]
