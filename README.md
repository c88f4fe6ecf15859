# chirpy

A small microblogging HTTP server built on Flask, storing its data in SQLite.
Users sign up with an e-mail address and a password, log in to receive a
short-lived JSON Web Token and a refresh token valid for 60 days, and post
"chirps" of at most 140 bytes (UTF-8). The words "kerfuffle", "sharbert" and
"fornax" are replaced with `****` on the way in (whole words only, ignoring
case). A webhook lets a payment provider upgrade users to the "Chirpy Red"
tier. The server also serves static files under `/app/` and counts the visits.

## Installing

```
pip install .
```

For running the tests as well:

```
pip install ".[test]"
pytest
```

## Configuration

Settings are read from the environment; a `.env` file in the working
directory is loaded first if present.

| Variable    | Meaning                                                                  |
|-------------|--------------------------------------------------------------------------|
| `DB_URL`    | Path of the SQLite database file; it and its tables are created if missing |
| `SECRET`    | Key used to sign and check access tokens (HS256)                         |
| `EXPIRES`   | Lifetime of access tokens, as a duration such as `1h`, `30m` or `1h30m`; an invalid value gives a lifetime of zero |
| `POLKA_KEY` | Key the payment webhook must present (compared ignoring case)            |

Example `.env`:

```
DB_URL=chirpy.db
SECRET=secret
EXPIRES=1h
POLKA_KEY=placeholder
```

## Running

```
chirpy
```

The command takes no options besides `--help`. It listens on all interfaces
on port 8080 and serves files from the current directory under `/app/`. It
uses Flask's built-in server; to run under another WSGI server, build the
application with `chirpy.app.create_app` instead.

## Endpoints

| Method | Path                      | Description                                                       |
|--------|---------------------------|-------------------------------------------------------------------|
| GET    | `/api/healthz`            | Readiness check, answers `OK` as plain text                       |
| GET    | `/admin/metrics`          | HTML page with the number of `/app/` visits                       |
| POST   | `/admin/reset`            | Deletes all users, and with them their chirps and refresh tokens  |
| *      | `/app/...`                | Static files; directories show `index.html` or a listing          |
| POST   | `/api/users`              | Create a user (`email`, `password`)                               |
| PUT    | `/api/users`              | Change own e-mail and password (bearer access token)              |
| POST   | `/api/login`              | Log in, returns the user with `token` and `refresh_token`         |
| POST   | `/api/refresh`            | Exchange a refresh token (as bearer) for a new access token       |
| POST   | `/api/revoke`             | Revoke a refresh token (as bearer)                                |
| GET    | `/api/chirps`             | List chirps oldest first; `author_id` filters, `sort=desc` orders newest first |
| GET    | `/api/chirps/{chirpID}`   | Fetch one chirp                                                   |
| POST   | `/api/chirps`             | Post a chirp (`body`, bearer access token)                        |
| DELETE | `/api/chirps/{chirpID}`   | Delete one of your own chirps (bearer access token)               |
| POST   | `/api/polka/webhooks`     | `user.upgraded` events mark a user as Chirpy Red                  |

Errors come back as JSON of the form `{"error": "..."}`. Times in responses
are written as `2024-01-02 03:04:05.123456 +0000 UTC`. The access-token
lifetime always comes from `EXPIRES`; an `expires_in_seconds` field sent to
`/api/login` is accepted but not used.

## Example session

```
curl -X POST localhost:8080/api/users \
     -H 'Content-Type: application/json' \
     -d '{"email": "user@example.com", "password": "password"}'

curl -X POST localhost:8080/api/login \
     -H 'Content-Type: application/json' \
     -d '{"email": "user@example.com", "password": "password"}'

curl -X POST localhost:8080/api/chirps \
     -H 'Authorization: Bearer token' \
     -H 'Content-Type: application/json' \
     -d '{"body": "Hello, world"}'
```

The webhook expects an `Authorization: ApiKey placeholder` header carrying
the configured `POLKA_KEY`.

## Using it as a library

- `chirpy.app.create_app(config, static_root)` builds the Flask application
  from a `chirpy.config.ApiConfig`; `ApiConfig.from_env()` fills one from the
  environment, and `chirpy.app.main()` is what the `chirpy` command runs.
- `chirpy.config.parse_duration` parses durations such as `"1.5s"` or
  `"-300ms"` into a `timedelta`.
- `chirpy.auth` holds `hash_password`, `check_password`, `make_jwt`,
  `validate_jwt`, `make_refresh_token`, `get_bearer_token` and `get_api_key`;
  failures raise `AuthError`.
- `chirpy.database.open_database(path)` returns a `Queries` object over a
  SQLite file, with methods for users, chirps and refresh tokens returning
  `User`, `Chirp` and `RefreshToken` records; lookups that find nothing
  raise `NoRowsError`.
- `chirpy.profanity.profanity_check` censors a chirp body.

## What it does not do

Storage is a single SQLite file; there is no support for other database
servers and no schema migrations beyond creating missing tables. There is no
TLS, no choice of port or host from the command line, and `/admin/reset`
is not protected by any credentials.