# Minifier addon packages
TERSER = "ember-cli-terser"
ESBUILD = "ember-cli-esbuild-minifier"
SWC = "ember-cli-swc-minifier"

# Removed before every scenario in addition to the scenario minifiers, so that
# only one minifier is ever installed during a build.
EXTRA_MINIFIERS = (
    "@nullvoxpopuli/ember-cli-esbuild",
)

DEP_MANAGERS = ("npm", "yarn")

# Dependency manager -> lockfile that identifies it (checked in order)
LOCKFILES = {
    "yarn": "yarn.lock",
    "npm": "package-lock.json",
}

BUILD_FILE_NAME = "ember-cli-build.js"
APP_CONSTRUCTOR = "EmberApp"
BUILD_COMMAND = ("ember", "build", "--environment", "production")
OUTPUT_ASSETS_DIR = "dist/assets"
ASSET_GLOB = "*.js*"

COMPRESSED_EXTENSIONS = ("gz", "br")

# Native module that must be rebuilt after every install
NATIVE_REBUILD_DEPS = ("node-sass",)

JOBS_ENV_VAR = "JOBS"

MINIFIERS = (TERSER, ESBUILD, SWC)
