from django.template import Context, Engine

# engine isolado: templates do tenant não enxergam tags/filtros dos apps
_engine = Engine(debug=False)


def render_message(template_str: str, context: dict, *, autoescape: bool = True) -> str:
    """
    Renderiza um template com placeholders no formato {{ var }}
    substituindo-os pelos valores do dicionário context.

    Exemplo:
        template = "Olá {{ nomeCliente }}, seu valor é {{ valor }}"
        ctx = {"nomeCliente": "Maria", "valor": "R$ 100,00"}
        output = render_message(template, ctx, autoescape=False)

    Para texto puro (WhatsApp, corpo texto do e-mail) use autoescape=False.
    """
    if not template_str:
        return ""
    tpl = _engine.from_string(template_str)
    return tpl.render(Context(context, autoescape=autoescape))
