from .materializer import DynamicButtonMaterializer, CacheKey
