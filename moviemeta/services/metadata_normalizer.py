from __future__ import annotations

import logging

from moviemeta.models.metadata import (
    IMDB_ID_KEY,
    PROVIDER_ID,
    TMDB_SET_ID_KEY,
    CastRole,
    Certification,
    MediaArtwork,
    MediaCastMember,
    MediaMetadata,
)
from moviemeta.models.tmdb_contracts import TmdbCrewMember, TmdbMovie
from moviemeta.services.genre_mapping import map_genres
from moviemeta.services.title_matching import is_valid_imdb_id

LOGGER = logging.getLogger("moviemeta.normalizer")

POSTER_PREVIEW_SIZE = "w185"
POSTER_DEFAULT_SIZE = "w342"
PROFILE_SIZE = "w185"


class MetadataNormalizer:
    """
    Maps a full TMDb movie record onto `MediaMetadata`.

    Pure field mapping; no remote calls happen here. A missing record yields an
    empty `MediaMetadata`, never `None`.
    """

    def __init__(self, image_base_url: str) -> None:
        self._image_base_url = image_base_url

    def normalize(
        self,
        movie: TmdbMovie | None,
        *,
        language: str,
        country: str | None = None,
    ) -> MediaMetadata:
        metadata = MediaMetadata(provider=PROVIDER_ID)
        if movie is None:
            return metadata

        metadata.ids[PROVIDER_ID] = movie.id
        metadata.title = movie.title
        metadata.original_title = movie.original_title
        metadata.plot = movie.overview
        metadata.tagline = movie.tagline
        if movie.runtime is not None:
            metadata.runtime = movie.runtime
        metadata.rating = float(movie.vote_average or 0.0)
        metadata.vote_count = movie.vote_count or 0

        poster_path = movie.poster_path or None
        metadata.artwork.append(
            MediaArtwork(
                preview_url=poster_path and self._image_url(POSTER_PREVIEW_SIZE, poster_path),
                default_url=poster_path and self._image_url(POSTER_DEFAULT_SIZE, poster_path),
                language=language,
                tmdb_id=movie.id,
            )
        )

        for spoken_language in movie.spoken_languages or []:
            metadata.spoken_languages.append(spoken_language.iso_639_1)
        for production_country in movie.production_countries or []:
            metadata.countries.append(production_country.iso_3166_1)

        if is_valid_imdb_id(movie.imdb_id):
            assert movie.imdb_id is not None
            metadata.ids[IMDB_ID_KEY] = movie.imdb_id.strip()

        for company in movie.production_companies or []:
            metadata.production_companies.append(company.name.strip())

        if movie.release_date is not None:
            metadata.year = movie.release_date.year
        metadata.release_date = movie.release_date

        metadata.certifications.extend(self._certifications(movie, country=country))
        metadata.cast_members.extend(self._cast_members(movie))
        metadata.genres.extend(map_genres(movie.genres))

        collection = movie.belongs_to_collection
        if collection is not None:
            metadata.ids[TMDB_SET_ID_KEY] = collection.id
            metadata.collection_id = collection.id
            metadata.collection_name = collection.name

        LOGGER.debug(
            "tmdb record normalized tmdb_id=%s cast=%s certifications=%s",
            movie.id,
            len(metadata.cast_members),
            len(metadata.certifications),
        )
        return metadata

    def _certifications(self, movie: TmdbMovie, *, country: str | None) -> list[Certification]:
        if movie.releases is None:
            return []
        wanted = country.casefold() if country else None
        certifications: list[Certification] = []
        for release in movie.releases.countries or []:
            # empty labels are never used
            if not release.certification:
                continue
            if wanted is not None and release.iso_3166_1.casefold() != wanted:
                continue
            certifications.append(
                Certification(country=release.iso_3166_1, label=release.certification)
            )
        return certifications

    def _cast_members(self, movie: TmdbMovie) -> list[MediaCastMember]:
        if movie.credits is None:
            return []
        members: list[MediaCastMember] = []
        for cast_member in movie.credits.cast or []:
            members.append(
                MediaCastMember(
                    role="actor",
                    name=cast_member.name,
                    character=cast_member.character,
                    image_url=self._profile_url(cast_member.profile_path),
                )
            )
        for crew_member in movie.credits.crew or []:
            member = self._crew_member(crew_member)
            if member is not None:
                members.append(member)
        return members

    def _crew_member(self, crew_member: TmdbCrewMember) -> MediaCastMember | None:
        role: CastRole
        if crew_member.job == "Director":
            role, part = "director", crew_member.department
        elif crew_member.department == "Writing":
            role, part = "writer", crew_member.department
        elif crew_member.department == "Production":
            role, part = "producer", crew_member.job
        else:
            return None
        return MediaCastMember(
            role=role,
            name=crew_member.name,
            part=part,
            image_url=self._profile_url(crew_member.profile_path),
        )

    def _profile_url(self, profile_path: str | None) -> str | None:
        if not profile_path:
            return None
        return self._image_url(PROFILE_SIZE, profile_path)

    def _image_url(self, size: str, path: str) -> str:
        return f"{self._image_base_url}{size}{path}"
