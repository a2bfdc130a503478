"""Controller UI payloads for the effect picker."""

from xml.sax.saxutils import quoteattr


def effects_state_xml(current: str) -> str:
    return (
        '<extras_state><extra><object id="effect" value='
        f"{quoteattr(current)}/></extra></extras_state>"
    )


def effects_setup_xml(effects: list[str], current: str) -> str:
    items = "".join(
        f"<item text={quoteattr(effect)} value={quoteattr(effect)}/>" for effect in effects
    )
    return (
        '<extras_setup><extra><section label="Effects">'
        '<object type="list" id="effect" label="Effect" command="SELECT_LIGHT_EFFECT" '
        f"value={quoteattr(current)}>"
        f'<list maxselections="1" minselections="1">{items}</list>'
        "</object></section></extra></extras_setup>"
    )
