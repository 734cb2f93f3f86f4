GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"

# public + private repos, profile and email
GITHUB_SCOPE = "read:user user:email repo"


def register_github(oauth, settings):
    oauth.register(
        name="github",
        client_id=settings.GITHUB_CLIENT_ID,
        client_secret=settings.GITHUB_CLIENT_SECRET,
        access_token_url=GITHUB_TOKEN_URL,
        authorize_url=GITHUB_AUTHORIZE_URL,
        api_base_url=settings.GITHUB_API_URL + "/",
        client_kwargs={"scope": GITHUB_SCOPE},
    )
