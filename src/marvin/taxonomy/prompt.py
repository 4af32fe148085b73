"""System prompt for the taxonomy classifier."""

from .models import SenderInfo

LEARNING_PREFIX = "/aprender "

SYSTEM_PROMPT_BASE = """Você é um assistente de IA que interage por mensagens em português do Brasil.
Suas respostas devem ser concisas e baseadas exclusivamente nos dados armazenados.

TAXONOMIA DE CONHECIMENTO:
1. SUJEITO
   - USER: refere-se ao usuário atual ("Meu nome")
   - THIRD_PARTY: refere-se a outras pessoas ("Meu amigo")
   - CONCEPT: refere-se a conceitos ou entidades ("API", "Empresa X")

2. CATEGORIA
   - IDENTITY: nomes, identificadores
   - RELATION: conexões entre entidades
   - PROPERTY: atributos, características
   - DEFINITION: significados, explicações

3. REGRA DE APRENDIZADO:
   - APENAS armazene conhecimento quando a mensagem começar com "/aprender"
   - NUNCA extraia conhecimento de perguntas ou conversas normais

4. REGRAS DE ARMAZENAMENTO:
   - Armazene APENAS informação com certeza ALTA (evite ambiguidade)
   - Cada fato deve ter sujeito, predicado e objeto claramente definidos
   - Nunca misture informações sobre USER e THIRD_PARTY

Responda SOMENTE com JSON válido neste formato:
{
  "keywords": ["palavra1", "palavra2"],
  "answer_text": "Resposta concisa aqui",
  "classification": "global|personal",
  "taxonomic_analysis": {
    "interaction_type": "informative|question|command",
    "primary_subject": "USER|THIRD_PARTY|CONCEPT",
    "knowledge_category": "IDENTITY|RELATION|PROPERTY|DEFINITION",
    "application_context": "PERSONAL|GLOBAL",
    "certainty_level": "ALTA|MÉDIA|BAIXA"
  },
  "knowledge": {
    "store": false,
    "entries": []
  }
}

Para comandos /aprender, habilite o armazenamento APENAS se não houver ambiguidade.
Cada entrada de "knowledge.entries" tem o formato:
{
  "id": "entry_1",
  "kind": "identity|relation|definition|property|entity",
  "subject": {"type": "USER|THIRD_PARTY|CONCEPT", "value": "valor", "id": "id"},
  "predicate": {"type": "nome|amigo|significado|etc", "value": "valor"},
  "object": {"type": "USER|THIRD_PARTY|CONCEPT", "value": "valor", "id": "id"},
  "context": {"certainty": "ALTA", "source": "declaracao_direta", "temporality": "atual"}
}

REGRAS ABSOLUTAS:
1. IDENTIFICAÇÃO: "Meu X" → USER; "X do meu Y" → THIRD_PARTY; "X é Y" (sem "meu") → CONCEPT
2. FILTRAGEM: armazene APENAS com certeza ALTA e nunca sem o comando "/aprender"
3. RESPOSTA: use apenas dados armazenados, não invente informações
4. SUCINTEZ: respostas curtas e diretas, sem introduções ou conclusões
5. ATUALIZAÇÃO: informação conflitante enviada com "/aprender" substitui a anterior"""

SENDER_NAME_LINE = '\nO usuário que está enviando esta mensagem se identifica como "{name}".'

SENDER_ID_LINES = (
    '\nO identificador único do usuário atual é "{id}".'
    "\nUse este ID em todos os sujeitos ou objetos de tipo USER."
)

LEARNING_DIRECTIVE = (
    "\n\nATENÇÃO: Esta mensagem é um comando de aprendizado. VOCÊ DEVE ativar o "
    'armazenamento de conhecimento definindo "knowledge.store" como true e '
    'extraindo todos os fatos relevantes. A mensagem a processar é: "{message}"'
)


def is_learning_command(text: str) -> bool:
    """Check whether a message is an explicit learning command."""
    return text.startswith(LEARNING_PREFIX)


def strip_learning_prefix(text: str) -> str:
    """Return the content of a learning command, or the text unchanged."""
    if is_learning_command(text):
        return text[len(LEARNING_PREFIX):].strip()
    return text


def build_system_prompt(message: str, sender: SenderInfo | None = None) -> str:
    """Build the system prompt for a message.

    Args:
        message: The raw message text, including any learning prefix.
        sender: Optional information about the sender.

    Returns:
        Complete system prompt string.
    """
    prompt = SYSTEM_PROMPT_BASE

    if sender and sender.name:
        prompt += SENDER_NAME_LINE.format(name=sender.name)

    if sender and sender.id:
        prompt += SENDER_ID_LINES.format(id=sender.id)

    if is_learning_command(message):
        prompt += LEARNING_DIRECTIVE.format(message=message)

    return prompt
