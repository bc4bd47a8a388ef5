from .controller import ButtonWidgetController
