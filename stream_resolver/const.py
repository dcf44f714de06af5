HD4_SERVER_NAME = "HD-4"

EPISODE_ID_MARKER = "ep="

CAPTION_KIND = "captions"
SUBTITLE_TRACK_KINDS = ("captions", "subtitles")

HD4_NO_DATA_ID_ERROR = "Could not extract streaming data"
HD4_NO_FILE_ERROR = "No streaming file found"
NO_STREAM_RESULT_ERROR = "Provider returned no streaming data"
