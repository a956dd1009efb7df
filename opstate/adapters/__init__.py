from .bindings import (
    GetBinding,
    GetMatcher,
    PostBinding,
    PostMatcher,
    RequestBinding,
    RequestMatcher,
    use_get,
    use_post,
    use_request,
)

__all__ = [
    "GetBinding",
    "GetMatcher",
    "PostBinding",
    "PostMatcher",
    "RequestBinding",
    "RequestMatcher",
    "use_get",
    "use_post",
    "use_request",
]
